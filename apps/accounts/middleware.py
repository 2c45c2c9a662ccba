from django.urls import reverse

from apps.core.api import api_error


class ForcePasswordChangeMiddleware:
    """
    Se o usuário estiver logado e must_change_password=True,
    bloqueia a API (403) até a senha ser alterada.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if request.user.is_authenticated and request.path.startswith("/api/"):
            p = getattr(request.user, "profile", None)
            if p and p.must_change_password:
                allowed = {
                    reverse("auth:login"),
                    reverse("auth:logout"),
                    reverse("auth:alterar_senha"),
                    reverse("auth:me"),
                }
                if request.path not in allowed and not request.path.startswith("/api/publico/"):
                    return api_error(
                        request,
                        "Altere sua senha antes de continuar",
                        status=403,
                        details={"code": "PASSWORD_CHANGE_REQUIRED"},
                    )

        return self.get_response(request)
