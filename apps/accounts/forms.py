from __future__ import annotations

from django import forms
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError

from apps.parlamentares.models import Parlamentar

from .models import Profile


class LoginForm(forms.Form):
    username = forms.CharField(label="Login", max_length=150)
    password = forms.CharField(label="Senha", strip=False)
    codigo = forms.CharField(label="Código 2FA", max_length=20, required=False)


class AlterarSenhaForm(forms.Form):
    senha_atual = forms.CharField(label="Senha atual", strip=False)
    password1 = forms.CharField(label="Nova senha", strip=False)
    password2 = forms.CharField(label="Confirmar nova senha", strip=False)

    def __init__(self, *args, user=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.user = user

    def clean_senha_atual(self):
        senha = self.cleaned_data["senha_atual"]
        if self.user is not None and not self.user.check_password(senha):
            raise ValidationError("Senha atual incorreta.")
        return senha

    def clean(self):
        cleaned = super().clean()
        senha1 = cleaned.get("password1") or ""
        senha2 = cleaned.get("password2") or ""
        if senha1 and senha2 and senha1 != senha2:
            self.add_error("password2", "As senhas não conferem.")
            return cleaned
        if senha1 and cleaned.get("senha_atual") == senha1:
            self.add_error("password1", "A nova senha deve ser diferente da atual.")
            return cleaned
        if senha1:
            try:
                validate_password(senha1, user=self.user)
            except ValidationError as e:
                self.add_error("password1", e)
        return cleaned


class CodigoForm(forms.Form):
    codigo = forms.CharField(label="Código", max_length=20)


class _UsuarioBaseForm(forms.Form):
    first_name = forms.CharField(label="Nome", max_length=80)
    last_name = forms.CharField(label="Sobrenome", max_length=80, required=False)
    email = forms.EmailField(label="E-mail", required=False)
    role = forms.ChoiceField(label="Função", choices=Profile.Role.choices)
    parlamentar = forms.ModelChoiceField(label="Parlamentar", queryset=Parlamentar.objects.none(), required=False)
    telefone = forms.CharField(label="Telefone", max_length=30, required=False)

    def __init__(self, *args, tenant=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.tenant = tenant
        qs = Parlamentar.objects.all()
        if tenant is not None:
            qs = qs.filter(tenant=tenant)
        self.fields["parlamentar"].queryset = qs

    def clean(self):
        cleaned = super().clean()
        if cleaned.get("role") == Profile.Role.PARLAMENTAR and not cleaned.get("parlamentar"):
            self.add_error("parlamentar", "Usuário parlamentar precisa estar vinculado a um parlamentar.")
        return cleaned


class UsuarioCreateForm(_UsuarioBaseForm):
    username = forms.CharField(label="Login", max_length=150)
    ativo = forms.BooleanField(label="Ativo", required=False, initial=True)

    def clean_username(self):
        username = (self.cleaned_data["username"] or "").strip()
        if " " in username:
            raise ValidationError("O login não pode conter espaços.")
        return username


class UsuarioUpdateForm(_UsuarioBaseForm):
    pass
