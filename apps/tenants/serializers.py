from __future__ import annotations


def tenant_publico(tenant) -> dict:
    return {
        "id": tenant.pk,
        "slug": tenant.slug,
        "nome": tenant.nome,
        "sigla": tenant.sigla,
        "logoUrl": tenant.logo_url,
        "faviconUrl": tenant.favicon_url,
        "corPrimaria": tenant.cor_primaria,
        "corSecundaria": tenant.cor_secundaria,
        "cidade": tenant.cidade,
        "estado": tenant.estado,
        "dominioPublico": tenant.dominio_publico,
    }


def tenant_to_dict(tenant) -> dict:
    data = tenant_publico(tenant)
    data.update(
        {
            "cnpj": tenant.cnpj,
            "dominio": tenant.dominio,
            "subdominio": tenant.subdominio,
            "plano": tenant.plano,
            "ativo": tenant.ativo,
            "criadoEm": tenant.criado_em,
            "atualizadoEm": tenant.atualizado_em,
        }
    )
    return data
