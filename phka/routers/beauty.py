"""
Beauty content: tips, tutorial videos and skin-type quizzes
"""
import logging
from collections import Counter
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from phka.database import get_db
from phka.models import BeautyQuiz, BeautyTip, Product, QuizResult, TutorialVideo, User
from phka.responses import paginate, send_response, validation_failed
from phka.routers.catalog import available_products, json_contains
from phka.schemas import TakeQuizRequest
from phka.security import get_current_user
from phka.serializers import product_dict, quiz_dict, quiz_result_dict, tip_dict, tutorial_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/beauty", tags=["beauty"])

RECOMMENDATION_LIMIT = 5


def score_answers(quiz: BeautyQuiz, answers: dict):
    """
    Check every question is answered with one of its options and return
    (errors, skin_type). The skin type most often attached to the chosen
    options wins; on a tie the one chosen first in question order wins.
    """
    errors = {}
    picked = []
    for question in quiz.questions:
        key = str(question.id)
        if key not in answers:
            errors[f"answers.{key}"] = ["This question must be answered."]
            continue
        option = question.option_for(answers[key])
        if option is None:
            errors[f"answers.{key}"] = ["The selected option is invalid."]
            continue
        if option.get("skin_type"):
            picked.append(option["skin_type"])
    if errors:
        return errors, None
    if not picked:
        return {}, None
    counts = Counter(picked)
    best = max(counts.values())
    return {}, next(s for s in picked if counts[s] == best)


def recommend_products(db: Session, skin_type: Optional[str]):
    if not skin_type:
        return []
    return (
        available_products(db)
        .filter(json_contains(Product.skin_types, skin_type))
        .order_by(Product.rating.desc(), Product.id.asc())
        .limit(RECOMMENDATION_LIMIT)
        .all()
    )


# ---------- Tips ----------
@router.get("/tips")
def list_tips(
    category: Optional[str] = None,
    skin_type: Optional[str] = None,
    page: int = Query(1, ge=1),
    db: Session = Depends(get_db),
):
    query = db.query(BeautyTip).filter(BeautyTip.is_published.is_(True))
    if category:
        query = query.filter(BeautyTip.category == category)
    if skin_type:
        query = query.filter(json_contains(BeautyTip.target_skin_types, skin_type))
    query = query.order_by(BeautyTip.created_at.desc(), BeautyTip.id.desc())
    return send_response(paginate(query, page, 20, tip_dict))


@router.get("/tips/{tip_id}")
def show_tip(tip_id: int, db: Session = Depends(get_db)):
    tip = db.query(BeautyTip).filter(BeautyTip.id == tip_id, BeautyTip.is_published.is_(True)).first()
    if not tip:
        raise HTTPException(status_code=404, detail="Beauty tip not found")
    return send_response(tip_dict(tip))


# ---------- Tutorials ----------
@router.get("/tutorials")
def list_tutorials(
    category: Optional[str] = None,
    difficulty: Optional[str] = None,
    page: int = Query(1, ge=1),
    db: Session = Depends(get_db),
):
    query = db.query(TutorialVideo).filter(TutorialVideo.is_published.is_(True))
    if category:
        query = query.filter(TutorialVideo.category == category)
    if difficulty:
        query = query.filter(TutorialVideo.difficulty_level == difficulty)
    query = query.order_by(TutorialVideo.created_at.desc(), TutorialVideo.id.desc())
    return send_response(paginate(query, page, 20, tutorial_dict))


@router.get("/tutorials/{tutorial_id}")
def show_tutorial(tutorial_id: int, db: Session = Depends(get_db)):
    video = (
        db.query(TutorialVideo)
        .filter(TutorialVideo.id == tutorial_id, TutorialVideo.is_published.is_(True))
        .first()
    )
    if not video:
        raise HTTPException(status_code=404, detail="Tutorial not found")
    video.view_count = (video.view_count or 0) + 1
    db.commit()
    db.refresh(video)
    return send_response(tutorial_dict(video))


# ---------- Quizzes ----------
@router.get("/quizzes")
def list_quizzes(db: Session = Depends(get_db)):
    quizzes = (
        db.query(BeautyQuiz)
        .filter(BeautyQuiz.is_active.is_(True))
        .order_by(BeautyQuiz.created_at.desc(), BeautyQuiz.id.desc())
        .all()
    )
    return send_response([quiz_dict(q, with_questions=True) for q in quizzes])


def _active_quiz(db: Session, quiz_id: int) -> BeautyQuiz:
    quiz = db.query(BeautyQuiz).filter(BeautyQuiz.id == quiz_id, BeautyQuiz.is_active.is_(True)).first()
    if not quiz:
        raise HTTPException(status_code=404, detail="Quiz not found")
    return quiz


@router.get("/quizzes/{quiz_id}")
def show_quiz(quiz_id: int, db: Session = Depends(get_db)):
    return send_response(quiz_dict(_active_quiz(db, quiz_id), with_questions=True))


@router.post("/quizzes/{quiz_id}/take", status_code=201)
def take_quiz(
    quiz_id: int, payload: TakeQuizRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    quiz = _active_quiz(db, quiz_id)
    answers = {str(k): v for k, v in payload.answers.items()}
    errors, skin_type = score_answers(quiz, answers)
    if errors:
        raise HTTPException(status_code=422, detail=validation_failed(errors))

    products = recommend_products(db, skin_type)
    result = QuizResult(
        user_id=user.id,
        quiz_id=quiz.id,
        answers=answers,
        skin_type_result=skin_type,
        recommendations=[p.id for p in products],
    )
    db.add(result)
    db.commit()
    db.refresh(result)
    logger.info("User %s completed quiz %s: %s", user.id, quiz.id, skin_type)

    data = quiz_result_dict(result)
    data["recommended_products"] = [product_dict(p) for p in products]
    return send_response(data, "Quiz completed successfully", status_code=201)


@router.get("/quiz-results")
def my_quiz_results(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    results = (
        db.query(QuizResult)
        .filter(QuizResult.user_id == user.id)
        .order_by(QuizResult.completed_at.desc(), QuizResult.id.desc())
        .all()
    )
    return send_response([quiz_result_dict(r) for r in results])
