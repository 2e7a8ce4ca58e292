from tests.base import AppTestBase


class SubmissionsApiTests(AppTestBase):
    def test_survey_example_end_to_end(self):
        form = self.create_form()
        created = self.submit(form["id"])
        self.assertEqual(created.status_code, 201, created.text)
        body = created.json()
        self.assertEqual(body["formId"], form["id"])
        self.assertEqual(body["firstName"], "A")
        self.assertEqual(body["lastName"], "B")

        listing = self.client.get(f"/api/submission/form/{form['id']}").json()
        self.assertEqual(listing["total"], 1)
        self.assertEqual(len(listing["data"]), 1)
        self.assertEqual(listing["data"][0]["responses"], {"Name": "Alice", "Subscribe": True})

    def test_responses_round_trip_with_exact_types(self):
        form = self.create_form()
        created = self.submit(
            form["id"], responses={"Name": "false", "Subscribe": False}
        ).json()
        fetched = self.client.get(f"/api/submission/{created['id']}")
        self.assertEqual(fetched.status_code, 200)
        responses = fetched.json()["responses"]
        self.assertEqual(responses, {"Name": "false", "Subscribe": False})
        self.assertIsInstance(responses["Name"], str)
        self.assertIs(responses["Subscribe"], False)

    def test_identity_is_validated_from_body(self):
        form = self.create_form()
        response = self.submit(form["id"], firstName="  ", lastName=None)
        self.assertEqual(response.status_code, 400)
        paths = {detail["path"] for detail in response.json()["details"]}
        self.assertEqual(paths, {"firstName", "lastName"})

    def test_responses_checked_against_field_types(self):
        form = self.create_form()
        response = self.submit(form["id"], responses={"Name": "Alice", "Subscribe": "yes"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json()["details"],
            [{"path": "responses.Subscribe", "message": '"Subscribe" must be a boolean'}],
        )

    def test_required_field_enforced_on_server(self):
        form = self.create_form()
        response = self.submit(form["id"], responses={"Subscribe": True})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["details"][0]["path"], "responses.Name")
        self.assertEqual(self.storage.submissions.count_submissions(), 0)

    def test_unknown_form_is_rejected(self):
        response = self.submit("does-not-exist")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"message": "Form not found"})

    def test_deleted_form_no_longer_accepts_submissions(self):
        form = self.create_form()
        self.client.delete(f"/api/forms/{form['id']}")
        self.assertEqual(self.submit(form["id"]).status_code, 404)

    def test_list_all_joins_form_title(self):
        survey = self.create_form()
        other = self.create_form({"title": "Other", "fields": [{"label": "Q", "type": "text"}]})
        self.submit(survey["id"])
        self.submit(other["id"], responses={"Q": "answer"})

        listing = self.client.get("/api/submission").json()
        self.assertEqual(listing["total"], 2)
        titles = {item["formId"]: item["formTitle"] for item in listing["data"]}
        self.assertEqual(titles, {survey["id"]: "Survey", other["id"]: "Other"})
        self.assertTrue(all(item["formDeleted"] is False for item in listing["data"]))
        self.assertNotIn("responses", listing["data"][0])

        self.client.delete(f"/api/forms/{other['id']}")
        listing = self.client.get("/api/submission").json()
        flagged = {item["formId"]: item["formDeleted"] for item in listing["data"]}
        self.assertEqual(flagged, {survey["id"]: False, other["id"]: True})

    def test_pagination_filters_by_form(self):
        survey = self.create_form()
        other = self.create_form({"title": "Other", "fields": [{"label": "Q", "type": "text"}]})
        for _ in range(3):
            self.submit(survey["id"])
        self.submit(other["id"], responses={"Q": "x"})

        page = self.client.get(
            f"/api/submission/form/{survey['id']}", params={"page": 2, "limit": 2}
        ).json()
        self.assertEqual((page["total"], page["totalPages"]), (3, 2))
        self.assertEqual(len(page["data"]), 1)
        self.assertEqual(page["data"][0]["formId"], survey["id"])

        empty = self.client.get("/api/submission/form/unknown").json()
        self.assertEqual((empty["total"], empty["data"]), (0, []))

    def test_page_far_past_the_end_is_empty(self):
        form = self.create_form()
        self.submit(form["id"])
        huge = {"page": 10**17, "limit": 100}

        by_form = self.client.get(f"/api/submission/form/{form['id']}", params=huge)
        self.assertEqual(by_form.status_code, 200)
        self.assertEqual((by_form.json()["total"], by_form.json()["data"]), (1, []))

        overall = self.client.get("/api/submission", params=huge)
        self.assertEqual(overall.status_code, 200)
        self.assertEqual((overall.json()["total"], overall.json()["data"]), (1, []))

    def test_response_keys_match_labels_case_insensitively(self):
        form = self.create_form()
        created = self.submit(form["id"], responses={"name": "Alice", " SUBSCRIBE": True})
        self.assertEqual(created.status_code, 201, created.text)
        stored = self.client.get(f"/api/submission/{created.json()['id']}").json()
        self.assertEqual(stored["responses"], {"Name": "Alice", "Subscribe": True})

    def test_get_and_delete(self):
        form = self.create_form()
        created = self.submit(form["id"]).json()

        deleted = self.client.delete(f"/api/submission/{created['id']}")
        self.assertEqual(deleted.status_code, 200)
        self.assertEqual(deleted.json(), {"message": "Submission deleted successfully"})

        missing = self.client.get(f"/api/submission/{created['id']}")
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(missing.json(), {"message": "Submission not found"})
        self.assertEqual(self.client.delete(f"/api/submission/{created['id']}").status_code, 404)


class AdvisoryReferenceTests(AppTestBase):
    enforce_form_reference = False

    def test_submission_to_unknown_form_is_accepted(self):
        response = self.submit("no-such-form", responses={"anything": "goes"})
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["formId"], "no-such-form")

        listing = self.client.get("/api/submission").json()
        self.assertEqual(listing["data"][0]["formTitle"], None)
        self.assertTrue(listing["data"][0]["formDeleted"])


class SubmissionsApiSQLiteTests(SubmissionsApiTests):
    storage_backend = "sqlite"
