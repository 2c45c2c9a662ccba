from .cripto import (
    cpf_hash,
    cpf_valido,
    decrypt_secret,
    encrypt_secret,
    mask_cpf,
    normalize_cpf,
    sha256_hex,
)

__all__ = [
    "cpf_hash",
    "cpf_valido",
    "decrypt_secret",
    "encrypt_secret",
    "mask_cpf",
    "normalize_cpf",
    "sha256_hex",
]
