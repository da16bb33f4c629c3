"""Integration tests for workspace creation, listing and member management."""
import pytest

from workspace_hub.models.membership import Membership, TenantRole
from workspace_hub.models.tenant import Tenant
from workspace_hub.models.user import User


class TestWorkspaces:

    def test_lists_workspaces_with_role_and_url(self, root_client, seed, outsider_headers):
        response = root_client.get("/api/account/workspaces", headers=outsider_headers)

        assert response.status_code == 200
        assert response.json()["workspaces"] == [{
            "id": seed.globex_id,
            "name": "Globex",
            "slug": "globex",
            "role": "owner",
            "url": "http://globex.localhost:3000",
        }]

    def test_listing_requires_session(self, root_client, seed):
        response = root_client.get("/api/account/workspaces")

        assert response.status_code == 401

    def test_create_makes_creator_owner(self, root_client, db, seed, member_headers):
        response = root_client.post(
            "/api/account/workspaces",
            json={"name": "Initech", "slug": "  Initech  "},
            headers=member_headers
        )

        assert response.status_code == 201
        data = response.json()
        assert data["slug"] == "initech"
        assert data["role"] == "owner"

        membership = db.query(Membership).filter(
            Membership.tenant_id == data["id"],
            Membership.user_id == seed.member_id
        ).one()
        assert membership.role == TenantRole.OWNER

    def test_duplicate_slug_is_conflict(self, root_client, seed, member_headers):
        response = root_client.post(
            "/api/account/workspaces",
            json={"name": "Acme Again", "slug": "acme"},
            headers=member_headers
        )

        assert response.status_code == 409

    @pytest.mark.parametrize("slug", ["bad slug", "-acme", "acme-", "www", "auth", "ac.me", "x" * 64])
    def test_invalid_slug_is_rejected(self, root_client, db, seed, member_headers, slug):
        response = root_client.post(
            "/api/account/workspaces",
            json={"name": "Bad", "slug": slug},
            headers=member_headers
        )

        assert response.status_code == 422
        assert db.query(Tenant).count() == 2


class TestMembers:

    def test_any_member_lists_members(self, client, seed, member_headers):
        response = client.get("/api/v1/members", headers=member_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert {m["email"] for m in data["members"]} == {"owner@acme.com", "admin@acme.com", "member@acme.com"}

    def test_admin_invites_unknown_email(self, client, db, seed, admin_headers):
        response = client.post(
            "/api/v1/members",
            json={"email": "newcomer@acme.com", "role": "member"},
            headers=admin_headers
        )

        assert response.status_code == 201
        assert response.json()["role"] == "member"
        placeholder = db.query(User).filter(User.email == "newcomer@acme.com").one()
        assert not placeholder.has_password

    def test_invited_member_can_enter_tenant(self, client, seed, admin_headers, outsider_headers):
        client.post(
            "/api/v1/members",
            json={"email": "outsider@globex.com"},
            headers=admin_headers
        )

        response = client.get("/dashboard", headers=outsider_headers)

        assert response.status_code == 200
        assert response.json()["role"] == "member"

    def test_duplicate_invite_is_conflict(self, client, seed, admin_headers):
        response = client.post(
            "/api/v1/members",
            json={"email": "member@acme.com"},
            headers=admin_headers
        )

        assert response.status_code == 409

    def test_member_cannot_invite(self, client, seed, member_headers):
        response = client.post(
            "/api/v1/members",
            json={"email": "newcomer@acme.com"},
            headers=member_headers
        )

        assert response.status_code == 403

    def test_admin_cannot_grant_owner(self, client, seed, admin_headers):
        response = client.post(
            "/api/v1/members",
            json={"email": "newcomer@acme.com", "role": "owner"},
            headers=admin_headers
        )

        assert response.status_code == 403

    def test_removed_member_loses_access(self, client, seed, owner_headers, member_headers):
        response = client.delete(f"/api/v1/members/{seed.member_id}", headers=owner_headers)
        assert response.status_code == 204

        response = client.get("/dashboard", headers=member_headers)

        assert response.status_code == 307
        assert response.headers["location"].endswith("/auth/unauthorized")

    def test_removing_non_member_is_404(self, client, seed, owner_headers):
        response = client.delete(f"/api/v1/members/{seed.outsider_id}", headers=owner_headers)

        assert response.status_code == 404

    def test_cannot_remove_self(self, client, seed, owner_headers):
        response = client.delete(f"/api/v1/members/{seed.owner_id}", headers=owner_headers)

        assert response.status_code == 400

    def test_admin_cannot_remove_owner(self, client, seed, admin_headers, owner_headers):
        response = client.delete(f"/api/v1/members/{seed.owner_id}", headers=admin_headers)

        assert response.status_code == 403
        assert client.get("/dashboard", headers=owner_headers).json()["role"] == "owner"

    def test_admin_removes_member(self, client, seed, admin_headers):
        response = client.delete(f"/api/v1/members/{seed.member_id}", headers=admin_headers)

        assert response.status_code == 204
