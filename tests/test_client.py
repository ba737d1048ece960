"""Tests for the client layer: BackendClient, the stores and the exporter."""

import json

import httpx
import pytest
import pytest_asyncio

from bazar_buddy.client.backend import BackendAuthError, BackendClient, BackendError
from bazar_buddy.client.export import ListExporter
from bazar_buddy.client.store import AuthStore, GroceryStore
from bazar_buddy.models.schemas import ItemCreate, ItemUpdate, ListDetailsUpdate, ListItemsReplace
from bazar_buddy.services.price_service import estimate_price_locally

ITEMS = [
    ItemCreate(name="Rice", quantity=2, unit="kg", estimated_price=10),
    ItemCreate(name="Milk", quantity=1, unit="l", estimated_price=2),
]


@pytest_asyncio.fixture
async def backend(transport):
    async with BackendClient("http://test", transport=transport) as client:
        yield client


@pytest_asyncio.fixture
async def signed_in(backend, tmp_path):
    auth = AuthStore(backend, tmp_path / "session.json")
    assert await auth.register("Karim", "karim@example.com", "secret123")
    return auth


@pytest_asyncio.fixture
async def store(backend, signed_in):
    return GroceryStore(backend)


def recording_client(handler=None):
    """A BackendClient whose requests are recorded instead of sent."""
    requests = []

    def record(request: httpx.Request):
        requests.append(request)
        if handler:
            return handler(request)
        return httpx.Response(500, json={"detail": "unexpected"})

    client = BackendClient("http://test", token="t0k3n", transport=httpx.MockTransport(record))
    return client, requests


def list_body(**overrides):
    body = {
        "id": "abc",
        "title": "Weekly",
        "month": "April",
        "year": 2025,
        "created_at": "2025-04-01T10:00:00",
        "items": [],
        "total_estimated_price": 0.0,
    }
    body.update(overrides)
    return body


class TestBackendClient:

    @pytest.mark.asyncio
    async def test_unauthorized_raises_auth_error(self, backend):
        with pytest.raises(BackendAuthError) as exc:
            await backend.get_lists()
        assert exc.value.status_code == 401

    @pytest.mark.asyncio
    async def test_validation_errors_are_readable(self, backend, signed_in):
        with pytest.raises(BackendError) as exc:
            await backend._json("POST", "/api/lists", json={"title": "x", "month": "March", "year": 2025, "items": []})
        assert exc.value.status_code == 422
        assert "items" in exc.value.detail

    @pytest.mark.asyncio
    async def test_network_failure_is_backend_error(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = BackendClient("http://test", transport=httpx.MockTransport(refuse))
        with pytest.raises(BackendError) as exc:
            await client.get_lists()
        assert exc.value.status_code is None
        await client.close()

    @pytest.mark.asyncio
    async def test_print_preview_retries_once_with_cache_buster(self):
        def handler(request):
            if "_ts" in request.url.params:
                return httpx.Response(200, text="<html>ok</html>")
            return httpx.Response(502, text="bad gateway")

        client, requests = recording_client(handler)
        assert await client.fetch_print_preview("abc") == "<html>ok</html>"
        assert len(requests) == 2
        assert "_ts" not in requests[0].url.params
        await client.close()

    @pytest.mark.asyncio
    async def test_print_preview_gives_up_after_one_retry(self):
        client, requests = recording_client(lambda request: httpx.Response(502, text="bad gateway"))
        with pytest.raises(BackendError):
            await client.fetch_print_preview("abc")
        assert len(requests) == 2
        await client.close()


class TestAuthStore:

    @pytest.mark.asyncio
    async def test_session_survives_restart(self, transport, tmp_path):
        session_file = tmp_path / "session.json"
        async with BackendClient("http://test", transport=transport) as client:
            assert await AuthStore(client, session_file).register("Karim", "karim@example.com", "secret123")

        assert json.loads(session_file.read_text())["user"]["email"] == "karim@example.com"

        async with BackendClient("http://test", transport=transport) as client:
            restored = AuthStore(client, session_file)
            assert await restored.restore()
            assert restored.user.name == "Karim"
            assert restored.is_authenticated

    @pytest.mark.asyncio
    async def test_logout_clears_session_file(self, signed_in):
        await signed_in.logout()
        assert not signed_in.session_file.exists()
        assert not signed_in.is_authenticated
        assert signed_in.notifications[-1].title == "Logged out"

    @pytest.mark.asyncio
    async def test_failed_login_notifies(self, backend, tmp_path):
        auth = AuthStore(backend, tmp_path / "session.json")
        assert not await auth.login("nobody@example.com", "secret123")
        assert auth.notifications[-1].is_error
        assert auth.notifications[-1].title == "Login failed"

    @pytest.mark.asyncio
    async def test_revoked_session_is_forgotten(self, transport, signed_in):
        token = signed_in.client.token
        await signed_in.client.logout()
        signed_in.client.token = token

        async with BackendClient("http://test", transport=transport) as client:
            restored = AuthStore(client, signed_in.session_file)
            assert not await restored.restore()
        assert not signed_in.session_file.exists()

    @pytest.mark.asyncio
    async def test_password_reset_request(self, signed_in):
        assert await signed_in.request_password_reset("karim@example.com")
        assert signed_in.notifications[-1].title == "Check your email"


class TestGroceryStore:

    @pytest.mark.asyncio
    async def test_empty_list_rejected_before_network(self):
        client, requests = recording_client()
        store = GroceryStore(client)

        assert await store.create_list("Weekly", "March", 2025, []) is None
        assert await store.create_list("  ", "March", 2025, ITEMS) is None
        assert requests == []
        assert all(n.is_error for n in store.notifications)
        await client.close()

    @pytest.mark.asyncio
    async def test_notifications_in_bengali(self, backend, signed_in):
        store = GroceryStore(backend, language="bn")

        assert await store.create_list("Weekly", "March", 2025, []) is None
        assert store.notifications[-1].title == "তথ্য অনুপস্থিত"
        assert store.notifications[-1].description == "অনুগ্রহ করে তালিকায় অন্তত একটি আইটেম যোগ করুন"

        assert await store.create_list("Weekly", "March", 2025, ITEMS)
        assert store.notifications[-1].title == "তালিকা তৈরি হয়েছে"
        assert store.notifications[-1].description == "Weekly সফলভাবে তৈরি হয়েছে।"

    @pytest.mark.asyncio
    async def test_create_requires_sign_in(self, backend):
        store = GroceryStore(backend)
        assert await store.create_list("Weekly", "March", 2025, ITEMS) is None
        assert store.notifications[-1].title == "Not signed in"

    @pytest.mark.asyncio
    async def test_round_trip(self, store):
        items = [ItemCreate(name=f"Item {n}", quantity=n + 1, estimated_price=n) for n in range(5)]
        list_id = await store.create_list("Weekly", "March", 2025, items)

        assert store.notifications[-1].title == "List Created"
        await store.refresh()
        fetched = store.get_list(list_id)
        assert [(i.name, i.quantity) for i in fetched.items] == [(i.name, i.quantity) for i in items]
        assert fetched.total_estimated_price == 10.0

    @pytest.mark.asyncio
    async def test_item_mutations_track_server_total(self, store):
        list_id = await store.create_list("Weekly", "March", 2025, ITEMS)

        item = await store.add_item(list_id, ItemCreate(name="Eggs", quantity=12, unit="dozen", estimated_price=36))
        assert store.get_list(list_id).total_estimated_price == 48.0
        assert store.get_list(list_id).items[-1].id == item.id

        await store.update_item(list_id, item.id, ItemUpdate(name="Eggs", quantity=6, unit="dozen", estimated_price=18))
        assert store.get_list(list_id).total_estimated_price == 30.0

        assert await store.remove_item(list_id, item.id)
        local = store.get_list(list_id)
        assert local.total_estimated_price == 12.0
        assert [i.name for i in local.items] == ["Rice", "Milk"]

        await store.refresh()
        assert store.get_list(list_id).total_estimated_price == local.total_estimated_price

    @pytest.mark.asyncio
    async def test_update_list_refetches(self, store):
        list_id = await store.create_list("Weekly", "March", 2025, ITEMS)

        assert await store.update_list(
            list_id,
            details=ListDetailsUpdate(title="Eid Bazar", month="April", year=2025),
            items=ListItemsReplace(items=[ItemCreate(name="Beef", estimated_price=12)]),
        )
        updated = store.get_list(list_id)
        assert updated.title == "Eid Bazar"
        assert updated.total_estimated_price == 12.0

    @pytest.mark.asyncio
    async def test_partial_update_still_refetches(self):
        saved = list_body(title="Eid Bazar")

        def handler(request):
            if request.url.path.endswith("/details"):
                return httpx.Response(200, json=saved)
            if request.url.path.endswith("/items"):
                return httpx.Response(422, json={"detail": "items rejected"})
            return httpx.Response(200, json=[saved])

        client, requests = recording_client(handler)
        store = GroceryStore(client)

        assert not await store.update_list(
            "abc",
            details=ListDetailsUpdate(title="Eid Bazar", month="April", year=2025),
            items=ListItemsReplace(items=[ItemCreate(name="Beef", estimated_price=12)]),
        )
        assert store.get_list("abc").title == "Eid Bazar"
        assert requests[-1].method == "GET"
        assert store.notifications[-1].title == "Could not update list"
        await client.close()

    @pytest.mark.asyncio
    async def test_update_not_reported_when_refetch_fails(self):
        def handler(request):
            if request.method == "PUT":
                return httpx.Response(200, json=list_body())
            return httpx.Response(503, json={"detail": "down"})

        client, requests = recording_client(handler)
        store = GroceryStore(client)

        assert not await store.update_list("abc", details=ListDetailsUpdate(title="Eid", month="April", year=2025))
        titles = [n.title for n in store.notifications]
        assert "List Updated" not in titles
        assert store.notifications[-1].is_error
        await client.close()

    @pytest.mark.asyncio
    async def test_delete_removes_locally(self, store):
        list_id = await store.create_list("Weekly", "March", 2025, ITEMS)
        store.select_list(list_id)

        assert await store.delete_list(list_id)
        assert store.get_list(list_id) is None
        assert store.current_list is None

    @pytest.mark.asyncio
    async def test_failed_mutation_keeps_local_state(self, store):
        list_id = await store.create_list("Weekly", "March", 2025, ITEMS)
        before = store.get_list(list_id)

        assert await store.remove_item(list_id, "missing") is False
        assert store.get_list(list_id) == before
        assert store.notifications[-1].is_error

    @pytest.mark.asyncio
    async def test_price_suggestion_falls_back_locally(self, store):
        assert await store.generate_price_suggestion("rice", 2, "kg") == 10.0
        assert await store.generate_price_suggestion("Hilsa", 1, "kg") == estimate_price_locally("Hilsa", 1, "kg")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response", [
        httpx.Response(200, json={"error": "x"}),
        httpx.Response(200, json={"price": None}),
        httpx.Response(200, json=[1, 2]),
        httpx.Response(200, text="not json"),
    ])
    async def test_malformed_price_reply_falls_back_locally(self, response):
        client, requests = recording_client(lambda request: response)
        store = GroceryStore(client)

        assert await store.generate_price_suggestion("rice", 2, "kg") == 10.0
        assert len(requests) == 1
        await client.close()

    @pytest.mark.asyncio
    async def test_price_suggestion_prefers_remote(self, store, fake_llm):
        fake_llm.reply = "120"
        assert await store.generate_price_suggestion("rice", 2, "kg") == 120.0


class TestListExporter:

    @pytest.mark.asyncio
    async def test_exports_print_preview(self, store, tmp_path):
        list_id = await store.create_list("Weekly", "March", 2025, ITEMS)

        result = await ListExporter(store.client, store).export(list_id, tmp_path / "weekly")

        assert result.strategy == "print-preview"
        assert result.path.suffix == ".html"
        assert "Weekly" in result.path.read_text(encoding="utf-8")

    @pytest.mark.asyncio
    async def test_falls_back_to_local_pdf(self, store, tmp_path):
        list_id = await store.create_list("Weekly", "March", 2025, ITEMS)
        offline, requests = recording_client(lambda request: httpx.Response(503, text="down"))

        result = await ListExporter(offline, store).export(list_id, tmp_path / "weekly.html")

        assert result.strategy == "local-pdf"
        assert result.path.name == "weekly.pdf"
        assert result.path.read_bytes().startswith(b"%PDF")
        assert len(requests) == 2
        await offline.close()

    @pytest.mark.asyncio
    async def test_print_preview_uses_store_language(self, tmp_path):
        client, requests = recording_client(lambda request: httpx.Response(200, text="<html>ok</html>"))
        store = GroceryStore(client, language="bn")

        result = await ListExporter(client, store).export("abc", tmp_path / "weekly")

        assert result.strategy == "print-preview"
        assert requests[0].url.params["lang"] == "bn"
        await client.close()
