try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from mailgate.services.token_cipher import TokenCipherService


def test_token_cipher_roundtrip() -> None:
    cipher = TokenCipherService(secret="super-secret-key")
    plaintext = "sensitive-token"

    encrypted = cipher.encrypt(plaintext)
    assert encrypted != plaintext

    decrypted = cipher.decrypt(encrypted)
    assert decrypted == plaintext


def test_token_cipher_rejects_bad_ciphertext() -> None:
    cipher = TokenCipherService(secret="another-secret")

    with pytest.raises(ValueError):
        cipher.decrypt("not-valid")


def test_token_cipher_accepts_retired_secret_and_rotates() -> None:
    old = TokenCipherService(secret="old-secret")
    current = TokenCipherService(secret="new-secret", previous_secrets=["old-secret"])
    legacy = old.encrypt("refresh-token")

    assert current.decrypt(legacy) == "refresh-token"

    rotated = current.rotate(legacy)
    assert TokenCipherService(secret="new-secret").decrypt(rotated) == "refresh-token"
    with pytest.raises(ValueError):
        old.decrypt(rotated)


def test_is_token_tells_ciphertext_from_plain_provider_tokens() -> None:
    cipher = TokenCipherService(secret="shape-secret")

    assert TokenCipherService.is_token(cipher.encrypt("ya29.access"))
    assert TokenCipherService.is_token(TokenCipherService(secret="other").encrypt("x"))
    assert not TokenCipherService.is_token("ya29.a0AfH6SMplaintext")
    assert not TokenCipherService.is_token("1//0gLegacyRefreshToken")
    assert not TokenCipherService.is_token("")
