"""
Community posts, likes and comments
"""
import logging
from datetime import timedelta
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from phka.database import get_db, utcnow
from phka.models import CommunityPost, PostComment, PostLike, User
from phka.responses import paginate, send_response
from phka.schemas import CommentRequest, CreatePostRequest, UpdatePostRequest
from phka.security import get_current_user
from phka.serializers import comment_dict, post_dict
from phka.utils import sanitize_text

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/community", tags=["community"])

TRENDING_WINDOW_DAYS = 7


def _published_post(db: Session, post_id: int) -> CommunityPost:
    post = db.query(CommunityPost).filter(CommunityPost.id == post_id, CommunityPost.is_published.is_(True)).first()
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return post


def _own_post(db: Session, user: User, post_id: int) -> CommunityPost:
    post = db.get(CommunityPost, post_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    if post.user_id != user.id:
        raise HTTPException(status_code=403, detail="You can only modify your own posts")
    return post


def _clean_tags(tags):
    return [sanitize_text(t) for t in tags if t and sanitize_text(t)]


@router.get("/posts")
def list_posts(
    category: Optional[str] = None,
    sort: Literal["latest", "popular", "trending"] = "latest",
    page: int = Query(1, ge=1),
    db: Session = Depends(get_db),
):
    query = db.query(CommunityPost).filter(CommunityPost.is_published.is_(True))
    if category:
        query = query.filter(CommunityPost.category == category)
    if sort == "popular":
        query = query.order_by(CommunityPost.like_count.desc(), CommunityPost.id.desc())
    elif sort == "trending":
        since = utcnow() - timedelta(days=TRENDING_WINDOW_DAYS)
        query = query.filter(CommunityPost.created_at >= since).order_by(
            CommunityPost.like_count.desc(), CommunityPost.comment_count.desc(), CommunityPost.id.desc()
        )
    else:
        query = query.order_by(CommunityPost.created_at.desc(), CommunityPost.id.desc())
    return send_response(paginate(query, page, 20, post_dict))


@router.get("/posts/{post_id}")
def show_post(post_id: int, db: Session = Depends(get_db)):
    post = _published_post(db, post_id)
    post.view_count = (post.view_count or 0) + 1
    db.commit()
    comments = (
        db.query(PostComment)
        .filter(PostComment.post_id == post.id)
        .order_by(PostComment.created_at.desc(), PostComment.id.desc())
        .limit(10)
        .all()
    )
    return send_response(post_dict(post, comments=comments))


@router.post("/posts", status_code=201)
def create_post(payload: CreatePostRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    content = sanitize_text(payload.content)
    if not content:
        raise HTTPException(status_code=400, detail="Post content cannot be empty")
    post = CommunityPost(
        user_id=user.id,
        title=sanitize_text(payload.title),
        content=content,
        category=payload.category,
        tags=_clean_tags(payload.tags),
        status="approved",
        is_published=True,
        published_at=utcnow(),
    )
    db.add(post)
    db.commit()
    db.refresh(post)
    logger.info("User %s created community post %s", user.id, post.id)
    return send_response(post_dict(post), "Post created successfully", status_code=201)


@router.put("/posts/{post_id}")
def update_post(
    post_id: int, payload: UpdatePostRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    post = _own_post(db, user, post_id)
    changes = payload.model_dump(exclude_unset=True)
    if "title" in changes:
        post.title = sanitize_text(changes["title"])
    if changes.get("content") is not None:
        post.content = sanitize_text(changes["content"])
    if "category" in changes:
        post.category = changes["category"]
    if changes.get("tags") is not None:
        post.tags = _clean_tags(changes["tags"])
    db.commit()
    db.refresh(post)
    return send_response(post_dict(post), "Post updated successfully")


@router.delete("/posts/{post_id}")
def delete_post(post_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    post = _own_post(db, user, post_id)
    db.delete(post)
    db.commit()
    logger.info("User %s deleted community post %s", user.id, post_id)
    return send_response(message="Post deleted successfully")


@router.post("/posts/{post_id}/like")
def toggle_like(post_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    post = _published_post(db, post_id)
    like = db.query(PostLike).filter(PostLike.post_id == post.id, PostLike.user_id == user.id).first()
    if like:
        db.delete(like)
        post.like_count = max((post.like_count or 0) - 1, 0)
        liked = False
    else:
        db.add(PostLike(post_id=post.id, user_id=user.id))
        post.like_count = (post.like_count or 0) + 1
        liked = True
    db.commit()
    db.refresh(post)
    return send_response(
        {"liked": liked, "like_count": post.like_count}, "Post liked" if liked else "Post unliked"
    )


@router.post("/posts/{post_id}/comments", status_code=201)
def add_comment(
    post_id: int, payload: CommentRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    post = _published_post(db, post_id)
    if payload.parent_id is not None:
        parent = db.get(PostComment, payload.parent_id)
        if not parent or parent.post_id != post.id:
            raise HTTPException(status_code=400, detail="Parent comment does not belong to this post")
    content = sanitize_text(payload.content)
    if not content:
        raise HTTPException(status_code=400, detail="Comment cannot be empty")
    comment = PostComment(post_id=post.id, user_id=user.id, parent_id=payload.parent_id, content=content)
    db.add(comment)
    post.comment_count = (post.comment_count or 0) + 1
    db.commit()
    db.refresh(comment)
    return send_response(comment_dict(comment), "Comment added successfully", status_code=201)


@router.get("/my-posts")
def my_posts(page: int = Query(1, ge=1), user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    query = (
        db.query(CommunityPost)
        .filter(CommunityPost.user_id == user.id)
        .order_by(CommunityPost.created_at.desc(), CommunityPost.id.desc())
    )
    return send_response(paginate(query, page, 20, post_dict))
