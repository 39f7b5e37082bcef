import pytest

from phka.models import BeautyQuiz, BeautyTip, QuizQuestion, QuizResult, TutorialVideo

OPTIONS = {
    "feel": [
        {"value": "tight", "label": "Tight", "skin_type": "dry"},
        {"value": "shiny", "label": "Shiny", "skin_type": "oily"},
    ],
    "pores": [
        {"value": "large", "label": "Large", "skin_type": "oily"},
        {"value": "small", "label": "Small", "skin_type": "dry"},
    ],
    "react": [
        {"value": 1, "label": "Often", "skin_type": "sensitive"},
        {"value": 2, "label": "Never", "skin_type": "dry"},
    ],
}


@pytest.fixture
def quiz(db):
    q = BeautyQuiz(title="Skin type finder", description="Find your type")
    for order, key in enumerate(("feel", "pores", "react")):
        q.questions.append(QuizQuestion(question=f"Question {key}", options=OPTIONS[key], sort_order=order))
    db.add(q)
    db.commit()
    db.refresh(q)
    return q


def answers_for(quiz, *values):
    return {str(question.id): value for question, value in zip(quiz.questions, values)}


def test_tips_filtering(client, db):
    db.add(BeautyTip(title="Hydrate", content="Drink water", category="skincare", target_skin_types=["dry"]))
    db.add(BeautyTip(title="Blot", content="Use papers", category="makeup", target_skin_types=["oily"]))
    db.add(BeautyTip(title="Draft", content="Unpublished", category="skincare", is_published=False))
    db.commit()

    page = client.get("/api/beauty/tips").json()["data"]
    assert page["total"] == 2

    page = client.get("/api/beauty/tips", params={"skin_type": "oily"}).json()["data"]
    assert [t["title"] for t in page["items"]] == ["Blot"]

    page = client.get("/api/beauty/tips", params={"category": "skincare"}).json()["data"]
    assert [t["title"] for t in page["items"]] == ["Hydrate"]

    tip_id = page["items"][0]["id"]
    assert client.get(f"/api/beauty/tips/{tip_id}").json()["data"]["content"] == "Drink water"
    assert client.get("/api/beauty/tips/999").status_code == 404


def test_tutorials_and_view_count(client, db):
    video = TutorialVideo(title="Contour", video_url="https://videos.example.com/c.mp4", difficulty_level="advanced")
    db.add(video)
    db.add(TutorialVideo(title="Basics", video_url="https://videos.example.com/b.mp4", difficulty_level="beginner"))
    db.commit()

    page = client.get("/api/beauty/tutorials", params={"difficulty": "advanced"}).json()["data"]
    assert [t["title"] for t in page["items"]] == ["Contour"]

    client.get(f"/api/beauty/tutorials/{video.id}")
    data = client.get(f"/api/beauty/tutorials/{video.id}").json()["data"]
    assert data["view_count"] == 2


def test_quiz_listing_hides_skin_type_mapping(client, quiz):
    quizzes = client.get("/api/beauty/quizzes").json()["data"]
    assert quizzes[0]["questions_count"] == 3
    option = quizzes[0]["questions"][0]["options"][0]
    assert option == {"value": "tight", "label": "Tight"}

    assert client.get(f"/api/beauty/quizzes/{quiz.id}").status_code == 200
    assert client.get("/api/beauty/quizzes/999").status_code == 404


def test_take_quiz_majority_wins_and_recommends(client, db, quiz, make_product, customer, customer_headers):
    top = make_product(name="Oil Control Gel", skin_types=["oily"], rating=4.8)
    low = make_product(name="Mattifier", skin_types=["oily", "combination"], rating=3.1)
    make_product(name="Rich Cream", skin_types=["dry"])
    make_product(name="Empty Gel", skin_types=["oily"], stock=0)

    res = client.post(
        f"/api/beauty/quizzes/{quiz.id}/take",
        json={"answers": answers_for(quiz, "shiny", "large", 2)},
        headers=customer_headers,
    )
    assert res.status_code == 201
    data = res.json()["data"]
    assert data["skin_type_result"] == "oily"
    assert [p["id"] for p in data["recommended_products"]] == [top.id, low.id]
    assert data["recommendations"] == [top.id, low.id]
    assert db.query(QuizResult).filter(QuizResult.user_id == customer.id).count() == 1

    results = client.get("/api/beauty/quiz-results", headers=customer_headers).json()["data"]
    assert results[0]["quiz_title"] == "Skin type finder"


def test_take_quiz_tie_goes_to_earliest_answer(client, quiz, customer_headers):
    res = client.post(
        f"/api/beauty/quizzes/{quiz.id}/take",
        json={"answers": answers_for(quiz, "tight", "large", 1)},
        headers=customer_headers,
    )
    assert res.json()["data"]["skin_type_result"] == "dry"


def test_take_quiz_rejects_missing_and_invalid_answers(client, quiz, customer_headers):
    first, second, third = (str(q.id) for q in quiz.questions)
    res = client.post(
        f"/api/beauty/quizzes/{quiz.id}/take",
        json={"answers": {first: "tight", second: "huge"}},
        headers=customer_headers,
    )
    assert res.status_code == 422
    errors = res.json()["errors"]
    assert errors[f"answers.{second}"] == ["The selected option is invalid."]
    assert errors[f"answers.{third}"] == ["This question must be answered."]


def test_take_quiz_requires_auth(client, quiz):
    assert client.post(f"/api/beauty/quizzes/{quiz.id}/take", json={"answers": {}}).status_code == 401
