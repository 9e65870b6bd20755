"""Tests for the assessment endpoints of the simulated API."""

import pytest


def choice_question(title="Favourite language?", options=("Python", "Go")):
    return {
        "title": title,
        "type": "single-choice",
        "required": True,
        "options": [{"text": text} for text in options],
    }


def text_question(title="Tell us about yourself"):
    return {"title": title, "type": "long-text", "validation": {"maxLength": 500}}


class TestSaveAssessment:
    """PUT /assessments/:jobId"""

    @pytest.mark.asyncio
    async def test_create_then_get(self, http, job):
        body = {
            "title": "Backend screening",
            "sections": [{"title": "Basics", "questions": [choice_question(), text_question()]}],
        }

        saved = await http.put(f"/assessments/{job['id']}", json=body)
        fetched = await http.get(f"/assessments/{job['id']}")

        assert saved.status_code == 200
        assert fetched.json() == saved.json()
        assessment = saved.json()
        assert assessment["jobId"] == job["id"]
        questions = assessment["sections"][0]["questions"]
        assert [o["text"] for o in questions[0]["options"]] == ["Python", "Go"]
        assert all(o["id"] for o in questions[0]["options"])
        assert questions[1]["options"] == []
        assert questions[1]["validation"] == {"maxLength": 500}

    @pytest.mark.asyncio
    async def test_second_put_replaces_instead_of_merging(self, http, job):
        first = (await http.put(
            f"/assessments/{job['id']}",
            json={"title": "v1", "sections": [{"title": "A", "questions": [text_question()]}]},
        )).json()
        second = (await http.put(
            f"/assessments/{job['id']}",
            json={"title": "v2", "sections": [{"title": "B", "questions": []}]},
        )).json()

        fetched = (await http.get(f"/assessments/{job['id']}")).json()

        assert fetched["title"] == "v2"
        assert [s["title"] for s in fetched["sections"]] == ["B"]
        assert fetched["sections"][0]["questions"] == []
        assert second["id"] == first["id"]
        assert second["createdAt"] == first["createdAt"]

    @pytest.mark.asyncio
    async def test_read_only_fields_in_body_are_ignored(self, http, job):
        response = await http.put(
            f"/assessments/{job['id']}",
            json={"title": "T", "sections": [], "createdAt": "2001-01-01T00:00:00Z"},
        )

        assert response.status_code == 200
        assert not response.json()["createdAt"].startswith("2001")

    @pytest.mark.asyncio
    async def test_choice_question_without_options_is_rejected(self, http, job):
        body = {
            "title": "T",
            "sections": [{"title": "S", "questions": [choice_question(options=())]}],
        }

        response = await http.put(f"/assessments/{job['id']}", json=body)

        assert response.status_code == 400
        assert (await http.get(f"/assessments/{job['id']}")).status_code == 404

    @pytest.mark.asyncio
    async def test_text_question_options_are_dropped(self, http, job):
        question = {**text_question(), "options": [{"text": "stray"}]}
        body = {"title": "T", "sections": [{"title": "S", "questions": [question]}]}

        saved = (await http.put(f"/assessments/{job['id']}", json=body)).json()

        assert saved["sections"][0]["questions"][0]["options"] == []

    @pytest.mark.asyncio
    async def test_unknown_question_type_is_rejected(self, http, job):
        body = {
            "title": "T",
            "sections": [{"title": "S", "questions": [{"title": "Q", "type": "rating"}]}],
        }
        response = await http.put(f"/assessments/{job['id']}", json=body)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_job_is_404(self, http):
        response = await http.put("/assessments/missing", json={"title": "T", "sections": []})
        assert response.status_code == 404


class TestReadAssessments:
    """GET /assessments and GET /assessments/:jobId"""

    @pytest.mark.asyncio
    async def test_missing_assessment_is_404(self, http, job):
        response = await http.get(f"/assessments/{job['id']}")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_listing_is_enriched_with_job_details(self, http, job):
        await http.put(f"/assessments/{job['id']}", json={"title": "T", "sections": []})

        listing = (await http.get("/assessments")).json()

        assert len(listing) == 1
        assert listing[0]["jobRole"] == "Senior Backend Engineer"
        assert listing[0]["companyName"] == "Acme"

    @pytest.mark.asyncio
    async def test_enrichment_follows_job_edits(self, http, job):
        await http.put(f"/assessments/{job['id']}", json={"title": "T", "sections": []})
        await http.patch(f"/jobs/{job['id']}", json={"title": "Staff Engineer"})

        listing = (await http.get("/assessments")).json()

        assert listing[0]["jobRole"] == "Staff Engineer"


class TestDeleteAssessment:
    """DELETE /assessments/:jobId"""

    @pytest.mark.asyncio
    async def test_delete(self, http, job):
        await http.put(f"/assessments/{job['id']}", json={"title": "T", "sections": []})

        response = await http.delete(f"/assessments/{job['id']}")

        assert response.status_code == 204
        assert (await http.get(f"/assessments/{job['id']}")).status_code == 404
        assert (await http.get(f"/jobs/{job['id']}")).status_code == 200

    @pytest.mark.asyncio
    async def test_delete_missing_is_404(self, http, job):
        response = await http.delete(f"/assessments/{job['id']}")
        assert response.status_code == 404
