import pytest


class TestContact:
    def test_submit(self, client, admin_headers):
        resp = client.post("/api/contact", json={
            "name": "Mochi", "email": "mochi@example.com", "subject": "Sizes", "message": "Do you ship to CA?",
        })
        assert resp.status_code == 201
        listed = client.get("/api/admin/contact-messages", headers=admin_headers).get_json()["data"]["items"]
        assert listed[0]["subject"] == "Sizes"

    @pytest.mark.parametrize("missing", ["name", "email", "subject", "message"])
    def test_required_fields(self, client, missing):
        body = {"name": "Mochi", "email": "mochi@example.com", "subject": "Hi", "message": "Hello"}
        body[missing] = ""
        assert client.post("/api/contact", json=body).status_code == 400

    def test_listing_requires_admin(self, client):
        assert client.get("/api/admin/contact-messages").status_code == 401


class TestInterestCheck:
    def test_submit(self, client, admin_headers):
        resp = client.post("/api/interest-check", json={
            "mats": ["OG CatMat", "PeekMat"],
            "interestLevel": "4",
            "pricePoints": ["$35-45"],
            "otherSizes": "",
            "email": None,
            "suggestions": "Make a round one",
        })
        assert resp.status_code == 201
        (entry,) = client.get("/api/admin/interest-checks", headers=admin_headers).get_json()["data"]["items"]
        assert entry["interest_level"] == 4
        assert entry["mats"] == ["OG CatMat", "PeekMat"]
        assert entry["other_sizes"] is None
        assert entry["email"] is None

    @pytest.mark.parametrize("override", [
        {"mats": []},
        {"interestLevel": 0},
        {"interestLevel": 6},
        {"interestLevel": ""},
        {"pricePoints": []},
        {"email": "not-an-email"},
    ])
    def test_validation(self, client, override):
        body = {"mats": ["FaceMat"], "interestLevel": 3, "pricePoints": ["$45-55"]}
        body.update(override)
        assert client.post("/api/interest-check", json=body).status_code == 400
