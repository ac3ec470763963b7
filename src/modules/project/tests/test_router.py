"""Tests for project & bid routers: wiring, role guards, and error envelopes."""

from __future__ import annotations

import uuid
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.exceptions import PriceOutOfBoundsException
from src.models.enums import BidStatus, ProjectStatus, UserRole
from src.modules.auth.auth import AuthenticatedUser
from src.modules.project.router import bid_router, router


@pytest.fixture
def user():
    return AuthenticatedUser(id=uuid.uuid4(), role=UserRole.CUSTOMER, email="customer@test.com")


@pytest.fixture
def app(user, catalog_service):
    from fastapi.responses import JSONResponse

    from src.database.session import get_db
    from src.exceptions import AppException
    from src.modules.auth.auth import get_current_user
    from src.modules.catalog.service import get_catalog_service

    app = FastAPI()
    app.include_router(router, prefix="/api/v1")
    app.include_router(bid_router, prefix="/api/v1")

    @app.exception_handler(AppException)
    async def app_exception_handler(request, exc):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": {"code": exc.code, "message": exc.message}},
        )

    mock_db = AsyncMock()

    async def override_get_db():
        yield mock_db

    async def override_get_current_user():
        return user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user
    app.dependency_overrides[get_catalog_service] = lambda: catalog_service
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


class TestRouterPaths:
    def test_project_paths(self):
        paths = {(r.path, tuple(sorted(r.methods))) for r in router.routes}
        assert ("/projects/open", ("GET",)) in paths
        assert ("/projects/{project_id}/bids", ("POST",)) in paths
        assert ("/projects/{project_id}/accept-delivery", ("POST",)) in paths

    def test_static_paths_precede_project_id(self):
        paths = [r.path for r in router.routes]
        assert paths.index("/projects/open") < paths.index("/projects/{project_id}")
        assert paths.index("/projects/mine") < paths.index("/projects/{project_id}")

    def test_bid_paths(self):
        paths = {(r.path, tuple(sorted(r.methods))) for r in bid_router.routes}
        assert ("/bids/{bid_id}", ("DELETE",)) in paths
        assert ("/bids/{bid_id}/status", ("POST",)) in paths
        assert ("/bids/mine", ("GET",)) in paths


class TestProjectEndpoints:
    def test_create_requires_customer(self, client, user):
        user.role = UserRole.VENDOR
        response = client.post(
            "/api/v1/projects/", json={"main_item": {"product_type": "door"}}
        )
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"

    def test_create_requires_main_item(self, client):
        response = client.post("/api/v1/projects/", json={"title": "x"})
        assert response.status_code == 422

    def test_create_passes_body_to_service(self, client, user, make_project):
        project = make_project(status=ProjectStatus.DRAFT, customer_id=user.id)
        with patch("src.modules.project.router.ProjectService") as svc_cls:
            svc_cls.return_value.create_project = AsyncMock(return_value=project)
            response = client.post(
                "/api/v1/projects/",
                json={"main_item": {"product_type": "door", "width": 2, "height": 1}},
            )

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "Draft"
        assert body["status_code"] == 0
        customer_id, data = svc_cls.return_value.create_project.call_args.args
        assert customer_id == user.id
        assert data.main_item.width == 2

    def test_list_mine_accepts_status_code(self, client, make_project):
        with patch("src.modules.project.router.ProjectService") as svc_cls:
            svc_cls.return_value.list_for_customer = AsyncMock(return_value=([], 0))
            response = client.get("/api/v1/projects/mine", params={"status": "1"})

        assert response.status_code == 200
        assert response.json()["total"] == 0
        kwargs = svc_cls.return_value.list_for_customer.call_args.kwargs
        assert kwargs["status"] == ProjectStatus.PUBLISHED

    def test_list_mine_rejects_non_ascii_digit_status(self, client):
        with patch("src.modules.project.router.ProjectService") as svc_cls:
            svc_cls.return_value.list_for_customer = AsyncMock(return_value=([], 0))
            response = client.get("/api/v1/projects/mine", params={"status": "²"})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"
        svc_cls.return_value.list_for_customer.assert_not_called()

    def test_moderation_requires_admin(self, client):
        response = client.post(
            f"/api/v1/projects/{uuid.uuid4()}/moderation", json={"status": "Published"}
        )
        assert response.status_code == 403

    def test_moderation_by_admin(self, client, user, make_project):
        user.role = UserRole.ADMIN
        project = make_project(status=ProjectStatus.IN_BIDDING)
        with patch("src.modules.project.router.ProjectService") as svc_cls:
            svc_cls.return_value.moderate = AsyncMock(return_value=project)
            response = client.post(
                f"/api/v1/projects/{project.id}/moderation", json={"status": 2}
            )

        assert response.status_code == 200
        assert response.json()["status"] == "InBidding"
        args = svc_cls.return_value.moderate.call_args.args
        assert args[2] == ProjectStatus.IN_BIDDING

    def test_reject_delivery_requires_reason(self, client):
        response = client.post(
            f"/api/v1/projects/{uuid.uuid4()}/reject-delivery", json={}
        )
        assert response.status_code == 422


class TestBidEndpoints:
    def test_submit_requires_vendor(self, client):
        response = client.post(
            f"/api/v1/projects/{uuid.uuid4()}/bids", json={"price": "1500", "days": 5}
        )
        assert response.status_code == 403

    def test_price_out_of_bounds_surfaces_code(self, client, user):
        user.role = UserRole.VENDOR
        with patch("src.modules.project.router.BidService") as svc_cls:
            svc_cls.return_value.submit_bid = AsyncMock(
                side_effect=PriceOutOfBoundsException(Decimal("10"), Decimal("1000"), Decimal("2000"))
            )
            response = client.post(
                f"/api/v1/projects/{uuid.uuid4()}/bids", json={"price": "10", "days": 5}
            )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "PRICE_OUT_OF_BOUNDS"

    def test_list_bids_includes_vendor_stats(self, client, make_project, make_bid):
        project = make_project()
        bid = make_bid(project)
        stats = {"accepted_count": 2, "completed_count": 1, "rating": 2.5}
        with patch("src.modules.project.router.BidService") as svc_cls:
            svc_cls.return_value.list_bids = AsyncMock(return_value=[(bid, stats)])
            response = client.get(f"/api/v1/projects/{project.id}/bids")

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["items"][0]["vendor_stats"]["rating"] == 2.5
        assert body["items"][0]["status"] == "pending"

    def test_accept_action(self, client, user, make_project, make_bid):
        bid = make_bid(make_project(), status=BidStatus.ACCEPTED)
        with patch("src.modules.project.router.BidService") as svc_cls:
            svc_cls.return_value.update_bid_status = AsyncMock(return_value=bid)
            response = client.post(f"/api/v1/bids/{bid.id}/status", json={"action": "accept"})

        assert response.status_code == 200
        assert response.json()["status"] == "accepted"
        assert svc_cls.return_value.update_bid_status.call_args.args[2] == "accept"

    def test_unknown_action_rejected(self, client):
        response = client.post(f"/api/v1/bids/{uuid.uuid4()}/status", json={"action": "maybe"})
        assert response.status_code == 422

    def test_withdraw(self, client, user, make_project, make_bid):
        user.role = UserRole.VENDOR
        bid = make_bid(make_project(), vendor_id=user.id, status=BidStatus.WITHDRAWN)
        with patch("src.modules.project.router.BidService") as svc_cls:
            svc_cls.return_value.withdraw_bid = AsyncMock(return_value=bid)
            response = client.delete(f"/api/v1/bids/{bid.id}")

        assert response.status_code == 200
        assert response.json()["status"] == "withdrawn"

    def test_my_bids_requires_vendor(self, client):
        response = client.get("/api/v1/bids/mine")
        assert response.status_code == 403
