import math

from tests.base import SURVEY, AppTestBase


class FormsApiTests(AppTestBase):
    def test_create_then_get_returns_same_form(self):
        created = self.create_form()
        self.assertEqual(created["title"], "Survey")
        self.assertEqual(created["fields"], SURVEY["fields"])
        self.assertFalse(created["isDeleted"])
        self.assertTrue(created["id"])

        fetched = self.client.get(f"/api/forms/{created['id']}")
        self.assertEqual(fetched.status_code, 200)
        body = fetched.json()
        self.assertEqual(body["id"], created["id"])
        self.assertEqual(body["title"], created["title"])
        self.assertEqual(body["fields"], created["fields"])
        self.assertEqual(body["createdAt"], created["createdAt"])

    def test_required_defaults_to_false(self):
        created = self.create_form({"title": "T", "fields": [{"label": "Only", "type": "text"}]})
        self.assertEqual(created["fields"], [{"label": "Only", "type": "text", "required": False}])

    def test_duplicate_label_is_rejected_and_nothing_persisted(self):
        response = self.client.post(
            "/api/forms",
            json={
                "title": "Dup",
                "fields": [
                    {"label": "Name", "type": "text"},
                    {"label": " name", "type": "text"},
                ],
            },
        )
        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertEqual(body["message"], "Validation error")
        self.assertEqual(body["details"][0]["path"], "fields.1.label")
        self.assertIn("Duplicate field label", body["details"][0]["message"])
        self.assertEqual(self.storage.forms.count_forms(include_deleted=True), 0)

    def test_malformed_json_is_a_validation_error(self):
        response = self.client.post(
            "/api/forms", content=b"{not json", headers={"Content-Type": "application/json"}
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Validation error")

    def test_pagination_counts_and_pages(self):
        for index in range(7):
            self.create_form({"title": f"Form {index}", "fields": [{"label": "q", "type": "text"}]})

        first = self.client.get("/api/forms", params={"page": 1, "limit": 3}).json()
        self.assertEqual(first["total"], 7)
        self.assertEqual(first["totalPages"], math.ceil(7 / 3))
        self.assertEqual(first["page"], 1)
        self.assertEqual(first["limit"], 3)
        self.assertEqual(len(first["data"]), 3)

        last = self.client.get("/api/forms", params={"page": 3, "limit": 3}).json()
        self.assertEqual(len(last["data"]), 1)

        beyond = self.client.get("/api/forms", params={"page": 9, "limit": 3}).json()
        self.assertEqual(beyond["data"], [])
        self.assertEqual(beyond["total"], 7)

        seen = {form["id"] for page in (1, 2, 3) for form in self.client.get(
            "/api/forms", params={"page": page, "limit": 3}
        ).json()["data"]}
        self.assertEqual(len(seen), 7)

    def test_page_far_past_the_end_is_empty(self):
        self.create_form()
        response = self.client.get("/api/forms", params={"page": 10**17, "limit": 100})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["page"], 10**17)
        self.assertEqual(body["total"], 1)
        self.assertEqual(body["data"], [])

    def test_default_pagination_parameters(self):
        body = self.client.get("/api/forms", params={"page": "x", "limit": ""}).json()
        self.assertEqual((body["page"], body["limit"]), (1, 10))
        self.assertEqual(body["totalPages"], 0)

    def test_update_replaces_title_and_fields(self):
        created = self.create_form()
        response = self.client.patch(
            f"/api/forms/{created['id']}",
            json={"title": "Renamed", "fields": [{"label": "Comment", "type": "text"}]},
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["title"], "Renamed")
        self.assertEqual(body["fields"], [{"label": "Comment", "type": "text", "required": False}])
        self.assertEqual(body["createdAt"], created["createdAt"])

    def test_update_revalidates_whole_payload(self):
        created = self.create_form()
        response = self.client.patch(f"/api/forms/{created['id']}", json={"title": "Only title"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["details"][0]["path"], "fields")
        unchanged = self.client.get(f"/api/forms/{created['id']}").json()
        self.assertEqual(unchanged["title"], "Survey")

    def test_missing_ids_return_404(self):
        self.assertEqual(self.client.get("/api/forms/nope").status_code, 404)
        self.assertEqual(
            self.client.patch("/api/forms/nope", json=SURVEY).json(), {"message": "Form not found"}
        )
        self.assertEqual(self.client.delete("/api/forms/nope").status_code, 404)

    def test_soft_delete_hides_form_everywhere(self):
        created = self.create_form()
        deleted = self.client.delete(f"/api/forms/{created['id']}")
        self.assertEqual(deleted.status_code, 200)
        self.assertEqual(deleted.json(), {"message": "Form deleted successfully"})

        self.assertEqual(self.client.get(f"/api/forms/{created['id']}").status_code, 404)
        listing = self.client.get("/api/forms").json()
        self.assertEqual(listing["total"], 0)
        self.assertEqual(listing["data"], [])
        self.assertEqual(self.client.delete(f"/api/forms/{created['id']}").status_code, 404)

        record = self.storage.forms.get_form(created["id"])
        self.assertIsNotNone(record)
        self.assertTrue(record["is_deleted"])

    def test_healthz(self):
        self.assertEqual(self.client.get("/healthz").json(), {"status": "ok"})


class FormsApiHardDeleteTests(AppTestBase):
    delete_mode = "hard"

    def test_hard_delete_removes_record(self):
        created = self.create_form()
        self.assertEqual(self.client.delete(f"/api/forms/{created['id']}").status_code, 200)
        self.assertEqual(self.client.get(f"/api/forms/{created['id']}").status_code, 404)
        self.assertIsNone(self.storage.forms.get_form(created["id"]))


class FormsApiSQLiteTests(FormsApiTests):
    storage_backend = "sqlite"


class FormsApiSQLiteHardDeleteTests(FormsApiHardDeleteTests):
    storage_backend = "sqlite"
