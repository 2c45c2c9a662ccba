from django import forms

from apps.core.forms import PayloadModelForm

from .models import Noticia


class NoticiaForm(PayloadModelForm):
    class Meta:
        model = Noticia
        fields = ["titulo", "slug", "resumo", "conteudo", "categoria", "destaque", "publicada", "publicada_em"]


class ImagemNoticiaForm(forms.Form):
    imagem = forms.ImageField()
