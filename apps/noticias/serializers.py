from __future__ import annotations


def noticia_to_dict(n, *, completo: bool = False) -> dict:
    data = {
        "id": n.pk,
        "titulo": n.titulo,
        "slug": n.slug,
        "resumo": n.resumo,
        "categoria": n.categoria,
        "categoriaLabel": n.get_categoria_display(),
        "imagemUrl": n.imagem.url if n.imagem else "",
        "destaque": n.destaque,
        "publicada": n.publicada,
        "publicadaEm": n.publicada_em,
    }
    if completo:
        data["conteudo"] = n.conteudo
        data["autor"] = (n.autor.get_full_name() or n.autor.username) if n.autor_id else ""
    return data
