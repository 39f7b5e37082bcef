"""
Beauty content: tips, tutorial videos and skin quizzes
"""
from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from phka.database import Base, utcnow

SKIN_TYPES = ("dry", "oily", "combination", "normal", "sensitive")


class BeautyTip(Base):
    __tablename__ = "beauty_tips"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    category = Column(String(100))
    tags = Column(JSON)
    target_skin_types = Column(JSON)
    image = Column(String(255))
    author_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    is_featured = Column(Boolean, nullable=False, default=False)
    is_published = Column(Boolean, nullable=False, default=True)
    published_at = Column(DateTime, default=utcnow)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    author = relationship("User")

    def __repr__(self):
        return f"<BeautyTip(id={self.id}, title={self.title})>"


class TutorialVideo(Base):
    __tablename__ = "tutorial_videos"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    video_url = Column(String(500), nullable=False)
    thumbnail = Column(String(255))
    duration = Column(Integer)
    category = Column(String(100))
    difficulty_level = Column(String(20))
    tags = Column(JSON)
    view_count = Column(Integer, nullable=False, default=0)
    is_featured = Column(Boolean, nullable=False, default=False)
    is_published = Column(Boolean, nullable=False, default=True)
    published_at = Column(DateTime, default=utcnow)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<TutorialVideo(id={self.id}, title={self.title})>"


class BeautyQuiz(Base):
    __tablename__ = "beauty_quizzes"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    skin_type_focus = Column(String(20), nullable=False, default="all")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    questions = relationship(
        "QuizQuestion",
        back_populates="quiz",
        cascade="all, delete-orphan",
        order_by="(QuizQuestion.sort_order, QuizQuestion.id)",
    )

    def __repr__(self):
        return f"<BeautyQuiz(id={self.id}, title={self.title})>"


class QuizQuestion(Base):
    __tablename__ = "quiz_questions"

    id = Column(Integer, primary_key=True, index=True)
    quiz_id = Column(Integer, ForeignKey("beauty_quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    question = Column(Text, nullable=False)
    question_type = Column(String(20), nullable=False, default="single_choice")
    # [{"value": "a", "label": "...", "skin_type": "oily"}, ...]
    options = Column(JSON)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow)

    quiz = relationship("BeautyQuiz", back_populates="questions")

    def option_for(self, value):
        for option in self.options or []:
            if str(option.get("value")) == str(value):
                return option
        return None

    def __repr__(self):
        return f"<QuizQuestion(id={self.id}, quiz_id={self.quiz_id})>"


class QuizResult(Base):
    __tablename__ = "quiz_results"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    quiz_id = Column(Integer, ForeignKey("beauty_quizzes.id", ondelete="CASCADE"), nullable=False)
    answers = Column(JSON, nullable=False)
    recommendations = Column(JSON)
    skin_type_result = Column(String(20))
    completed_at = Column(DateTime, default=utcnow)

    quiz = relationship("BeautyQuiz")

    def __repr__(self):
        return f"<QuizResult(id={self.id}, user_id={self.user_id}, skin_type={self.skin_type_result})>"
