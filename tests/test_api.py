"""
Testes de integração HTTP: fluxo completo de circulação, autorização e
formato das respostas de erro.
"""

from decimal import Decimal

import pytest
from httpx import AsyncClient

from library_desk.models.book import Book

BOOK_PAYLOAD = {
    "title": "Vidas Secas",
    "author": "Graciliano Ramos",
    "isbn": "9788501012845",
    "category": "Romance",
    "description": "Uma família de retirantes no sertão.",
    "tags": ["clássico", "modernismo"],
    "published_year": 1938,
    "total_copies": 1,
}


@pytest.mark.anyio
class TestAuthEndpoints:
    """Login e dados do membro autenticado."""

    async def test_login_and_me(self, client: AsyncClient, student, member_password):
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": student.email, "password": member_password},
        )

        assert response.status_code == 200
        token = response.json()["token"]["access_token"]

        me = await client.get(
            "/api/v1/auth/me",
            headers={"Authorization": f"Bearer {token}"},
        )
        assert me.status_code == 200
        assert me.json()["id"] == str(student.id)
        assert "password_hash" not in me.json()

    async def test_login_wrong_password(self, client: AsyncClient, student):
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": student.email, "password": "errada"},
        )

        assert response.status_code == 401

    async def test_invalid_token(self, client: AsyncClient):
        response = await client.get(
            "/api/v1/auth/me",
            headers={"Authorization": "Bearer token-invalido"},
        )

        assert response.status_code == 401


@pytest.mark.anyio
class TestCirculationFlow:
    """Reserva, retirada e devolução pela API."""

    async def test_full_flow(
        self,
        client: AsyncClient,
        headers_for,
        staff_headers,
        student,
        student_headers,
        make_member,
    ):
        # Bibliotecário cadastra o livro com um único exemplar
        response = await client.post("/api/v1/books", json=BOOK_PAYLOAD, headers=staff_headers)
        assert response.status_code == 201
        book_id = response.json()["id"]
        assert response.json()["available_copies"] == 1

        # Aluno reserva
        response = await client.post(
            "/api/v1/reservations",
            json={"book_id": book_id},
            headers=student_headers,
        )
        assert response.status_code == 201
        reservation = response.json()["reservation"]
        assert reservation["status"] == "pending"
        assert reservation["member_id"] == str(student.id)

        # Outro aluno não consegue o mesmo exemplar
        other = await make_member()
        response = await client.post(
            "/api/v1/reservations",
            json={"book_id": book_id},
            headers=headers_for(other),
        )
        assert response.status_code == 400
        assert response.json()["error"] == "unavailable"
        assert response.json()["operation"] == "reserve"

        # Bibliotecário confirma a retirada
        response = await client.patch(
            f"/api/v1/reservations/{reservation['id']}/confirm-pickup",
            headers=staff_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["reservation"]["status"] == "confirmed_pickup"
        loan_id = body["loan"]["id"]
        assert body["loan"]["status"] == "borrowed"

        # Aluno vê o empréstimo ativo
        response = await client.get("/api/v1/loans/my", headers=student_headers)
        assert response.status_code == 200
        assert [loan["id"] for loan in response.json()] == [loan_id]

        # Devolução libera o exemplar
        response = await client.patch(f"/api/v1/loans/{loan_id}/return", headers=staff_headers)
        assert response.status_code == 200
        assert response.json()["loan"]["status"] == "returned"
        assert response.json()["fine_applied"] == "0.00"

        response = await client.get(
            f"/api/v1/books/{book_id}/availability",
            headers=student_headers,
        )
        assert response.status_code == 200
        assert response.json()["available_copies"] == 1
        assert response.json()["is_available"] is True

        response = await client.get(f"/api/v1/books/{book_id}/inventory", headers=staff_headers)
        assert response.json()["consistent"] is True

    async def test_cancel_own_reservation(
        self, client: AsyncClient, load, student_headers, make_book
    ):
        book = await make_book(total=1)
        response = await client.post(
            "/api/v1/reservations",
            json={"book_id": str(book.id)},
            headers=student_headers,
        )
        reservation_id = response.json()["reservation"]["id"]

        response = await client.patch(
            f"/api/v1/reservations/{reservation_id}/cancel",
            headers=student_headers,
        )

        assert response.status_code == 200
        assert response.json()["reservation"]["status"] == "cancelled"
        stored = await load(Book, book.id)
        assert stored.available_copies == 1

    async def test_cancel_twice_returns_invalid_state(
        self, client: AsyncClient, student_headers, make_book
    ):
        book = await make_book(total=1)
        response = await client.post(
            "/api/v1/reservations",
            json={"book_id": str(book.id)},
            headers=student_headers,
        )
        reservation_id = response.json()["reservation"]["id"]
        await client.patch(f"/api/v1/reservations/{reservation_id}/cancel", headers=student_headers)

        response = await client.patch(
            f"/api/v1/reservations/{reservation_id}/cancel",
            headers=student_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_state"
        assert response.json()["operation"] == "cancel"

    async def test_pickup_blocked_by_fee_balance(
        self, client: AsyncClient, staff_headers, make_member, make_book
    ):
        debtor = await make_member(fee_balance=Decimal("3.00"))
        book = await make_book(total=1)
        response = await client.post(
            "/api/v1/reservations",
            json={"book_id": str(book.id), "member_id": str(debtor.id)},
            headers=staff_headers,
        )
        assert response.status_code == 201
        reservation_id = response.json()["reservation"]["id"]

        response = await client.patch(
            f"/api/v1/reservations/{reservation_id}/confirm-pickup",
            headers=staff_headers,
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "fee_balance_outstanding"
        assert body["details"][0]["field"] == "fee_balance"

    async def test_unknown_book_returns_not_found(
        self, client: AsyncClient, student_headers, random_uuid
    ):
        response = await client.post(
            "/api/v1/reservations",
            json={"book_id": str(random_uuid)},
            headers=student_headers,
        )

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"


@pytest.mark.anyio
class TestAuthorization:
    """Regras de acesso por role e por dono."""

    async def test_student_cannot_manage_members(self, client: AsyncClient, student_headers):
        response = await client.get("/api/v1/members", headers=student_headers)

        assert response.status_code == 403

    async def test_missing_token(self, client: AsyncClient):
        response = await client.get("/api/v1/members")

        assert response.status_code in (401, 403)

    async def test_student_cannot_reserve_for_others(
        self, client: AsyncClient, student_headers, make_member, make_book
    ):
        other = await make_member()
        book = await make_book(total=1)

        response = await client.post(
            "/api/v1/reservations",
            json={"book_id": str(book.id), "member_id": str(other.id)},
            headers=student_headers,
        )

        assert response.status_code == 403

    async def test_student_cannot_touch_others_reservation(
        self, client: AsyncClient, student_headers, headers_for, make_member, make_book
    ):
        other = await make_member()
        book = await make_book(total=1)
        response = await client.post(
            "/api/v1/reservations",
            json={"book_id": str(book.id)},
            headers=headers_for(other),
        )
        reservation_id = response.json()["reservation"]["id"]

        response = await client.get(
            f"/api/v1/reservations/{reservation_id}",
            headers=student_headers,
        )
        assert response.status_code == 403

        response = await client.patch(
            f"/api/v1/reservations/{reservation_id}/cancel",
            headers=student_headers,
        )
        assert response.status_code == 403

    async def test_student_cannot_confirm_pickup(
        self, client: AsyncClient, student_headers, make_book
    ):
        book = await make_book(total=1)
        response = await client.post(
            "/api/v1/reservations",
            json={"book_id": str(book.id)},
            headers=student_headers,
        )
        reservation_id = response.json()["reservation"]["id"]

        response = await client.patch(
            f"/api/v1/reservations/{reservation_id}/confirm-pickup",
            headers=student_headers,
        )

        assert response.status_code == 403

    async def test_student_list_only_shows_own(
        self, client: AsyncClient, student, student_headers, headers_for, make_member, make_book
    ):
        other = await make_member()
        book = await make_book(total=2)
        await client.post(
            "/api/v1/reservations",
            json={"book_id": str(book.id)},
            headers=student_headers,
        )
        await client.post(
            "/api/v1/reservations",
            json={"book_id": str(book.id)},
            headers=headers_for(other),
        )

        response = await client.get(
            "/api/v1/reservations",
            params={"member_id": str(other.id)},
            headers=student_headers,
        )

        assert response.status_code == 200
        items = response.json()["items"]
        assert len(items) == 1
        assert items[0]["member_id"] == str(student.id)


@pytest.mark.anyio
class TestMemberEndpoints:
    """Cadastro e importação de alunos pela API."""

    async def test_create_member_returns_initial_password(
        self, client: AsyncClient, staff_headers
    ):
        response = await client.post(
            "/api/v1/members",
            json={"name": "Helena Castro", "email": "helena@escola.edu", "reg_number": "777"},
            headers=staff_headers,
        )

        assert response.status_code == 201
        assert response.json()["initial_password"] == "Helena777"
        assert response.json()["member"]["role"] == "student"

    async def test_validation_error_shape(self, client: AsyncClient, staff_headers):
        response = await client.post(
            "/api/v1/members",
            json={"name": "Sem Email", "email": "invalido", "reg_number": "1"},
            headers=staff_headers,
        )

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "validation_failed"
        assert body["operation"] == "member_create"
        assert [detail["field"] for detail in body["details"]] == ["email"]

    async def test_update_duplicate_email_operation(
        self, client: AsyncClient, staff_headers, make_member
    ):
        first = await make_member()
        second = await make_member()

        response = await client.put(
            f"/api/v1/members/{second.id}",
            json={"email": first.email},
            headers=staff_headers,
        )

        assert response.status_code == 422
        assert response.json()["operation"] == "member_update"

    async def test_import_csv(self, client: AsyncClient, staff_headers):
        content = (
            "Full Name,Email,Reg Number,Fee Balance\n"
            "Igor Nunes,igor@escola.edu,9001,0\n"
            "Julia Prado,julia@escola.edu,9002,1.50\n"
            "Igor Repetido,igor@escola.edu,9003,0\n"
        ).encode("utf-8-sig")

        response = await client.post(
            "/api/v1/members/import",
            files={"file": ("alunos.csv", content, "text/csv")},
            headers=staff_headers,
        )

        assert response.status_code == 200
        report = response.json()
        assert report["imported_count"] == 2
        assert report["failed_count"] == 1
        assert report["errors"][0].startswith("Row 4:")

    async def test_import_rejects_malformed_csv(self, client: AsyncClient, staff_headers):
        long_name = "A" * 200_000
        content = (
            "full_name,email,reg_number,fee_balance\n"
            f"{long_name},longo@escola.edu,9100,0\n"
        ).encode("utf-8")

        response = await client.post(
            "/api/v1/members/import",
            files={"file": ("alunos.csv", content, "text/csv")},
            headers=staff_headers,
        )

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "validation_failed"
        assert body["operation"] == "member_import"
        assert body["details"][0]["field"] == "file"

    async def test_import_rejects_other_extensions(self, client: AsyncClient, staff_headers):
        response = await client.post(
            "/api/v1/members/import",
            files={"file": ("alunos.xlsx", b"conteudo", "application/octet-stream")},
            headers=staff_headers,
        )

        assert response.status_code == 422
        assert response.json()["operation"] == "member_import"
        assert response.json()["details"][0]["field"] == "file"
