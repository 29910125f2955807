"""
Testes unitários para funções de segurança.
"""

from datetime import timedelta

import pytest

from library_desk.core.security import (
    create_access_token,
    decode_token,
    generate_initial_password,
    hash_password,
    verify_password,
)


class TestPasswordHashing:
    """Testes para hash de senha."""

    def test_hash_password_returns_hash(self):
        """Hash deve ser diferente da senha original."""
        password = "MinhaSenh@123"
        hashed = hash_password(password)

        assert hashed != password
        assert len(hashed) > 50  # bcrypt hash tem ~60 caracteres

    def test_hash_password_different_hashes(self):
        """Mesmo password deve gerar hashes diferentes (salt)."""
        password = "MinhaSenh@123"

        assert hash_password(password) != hash_password(password)

    def test_verify_password_correct(self):
        password = "MinhaSenh@123"
        hashed = hash_password(password)

        assert verify_password(password, hashed) is True

    def test_verify_password_incorrect(self):
        hashed = hash_password("MinhaSenh@123")

        assert verify_password("SenhaErrada123", hashed) is False

    def test_verify_password_malformed_hash(self):
        """Hash malformado conta como senha incorreta."""
        assert verify_password("MinhaSenh@123", "nao-e-um-hash") is False


class TestInitialPassword:
    """Senha inicial de alunos cadastrados pelo bibliotecário."""

    @pytest.mark.parametrize(
        "full_name, reg_number, expected",
        [
            ("Ana Maria Souza", "2024001", "Ana2024001"),
            ("  Bruno  ", " 77 ", "Bruno77"),
            ("Carla", "1", "Carla1"),
        ],
    )
    def test_first_name_plus_reg_number(self, full_name, reg_number, expected):
        assert generate_initial_password(full_name, reg_number) == expected


class TestJWT:
    """Testes para JWT."""

    def test_decode_token_valid(self):
        """Token válido deve ser decodificado."""
        member_id = "member-123"
        token = create_access_token(subject=member_id)
        payload = decode_token(token)

        assert payload is not None
        assert payload["sub"] == member_id
        assert "exp" in payload
        assert "iat" in payload

    def test_decode_token_with_role(self):
        token = create_access_token(subject="member-123", extra_data={"role": "staff"})
        payload = decode_token(token)

        assert payload["role"] == "staff"

    def test_decode_token_invalid(self):
        assert decode_token("invalid-token") is None

    def test_decode_token_expired(self):
        """Token expirado deve retornar None."""
        token = create_access_token(
            subject="member-123",
            expires_delta=timedelta(seconds=-1),
        )

        assert decode_token(token) is None

    def test_decode_token_tampered(self):
        """Token adulterado deve retornar None."""
        token = create_access_token(subject="member-123")
        tampered = token[:-5] + "XXXXX"

        assert decode_token(tampered) is None
