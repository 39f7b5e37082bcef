"""
Model -> dict transformers used to build response payloads.
Money is emitted as a float rounded to cents.
"""
from phka.utils import as_float


# ---------- Users ----------
def user_dict(user) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "phone": user.phone,
        "avatar": user.avatar,
        "birth_date": user.birth_date,
        "gender": user.gender,
        "skin_type": user.skin_type,
        "role": user.role,
        "loyalty_points": user.loyalty_points,
        "is_active": user.is_active,
        "created_at": user.created_at,
    }


def address_dict(address) -> dict:
    if address is None:
        return None
    return {
        "id": address.id,
        "type": address.type,
        "first_name": address.first_name,
        "last_name": address.last_name,
        "full_name": f"{address.first_name} {address.last_name}",
        "company": address.company,
        "address_line_1": address.address_line_1,
        "address_line_2": address.address_line_2,
        "city": address.city,
        "state": address.state,
        "postal_code": address.postal_code,
        "country": address.country,
        "phone": address.phone,
        "is_default": address.is_default,
    }


# ---------- Catalog ----------
def category_dict(category) -> dict:
    return {
        "id": category.id,
        "name": category.name,
        "slug": category.slug,
        "description": category.description,
        "image": category.image,
        "sort_order": category.sort_order,
    }


def variant_dict(variant) -> dict:
    return {
        "id": variant.id,
        "product_id": variant.product_id,
        "name": variant.name,
        "sku": variant.sku,
        "price": as_float(variant.price),
        "sale_price": as_float(variant.sale_price),
        "current_price": as_float(variant.current_price),
        "stock_quantity": variant.stock_quantity,
        "in_stock": variant.in_stock,
        "attributes": variant.attributes or {},
    }


def review_dict(review) -> dict:
    return {
        "id": review.id,
        "product_id": review.product_id,
        "rating": review.rating,
        "title": review.title,
        "comment": review.comment,
        "is_approved": review.is_approved,
        "user": {"id": review.user.id, "name": review.user.name} if review.user else None,
        "created_at": review.created_at,
    }


def product_dict(product, detail: bool = False) -> dict:
    data = {
        "id": product.id,
        "name": product.name,
        "slug": product.slug,
        "sku": product.sku,
        "brand": product.brand,
        "short_description": product.short_description,
        "price": as_float(product.price),
        "sale_price": as_float(product.sale_price),
        "current_price": as_float(product.current_price),
        "is_on_sale": product.is_on_sale,
        "stock_quantity": product.stock_quantity,
        "in_stock": product.in_stock,
        "rating": as_float(product.rating),
        "review_count": product.review_count,
        "is_featured": product.is_featured,
        "skin_types": product.skin_types or [],
        "tags": product.tags or [],
        "category": category_dict(product.category) if product.category else None,
    }
    if detail:
        data["description"] = product.description
        data["view_count"] = product.view_count
        data["variants"] = [variant_dict(v) for v in product.variants if v.is_active]
        data["reviews"] = [review_dict(r) for r in product.reviews if r.is_approved]
    return data


def store_dict(store) -> dict:
    return {
        "id": store.id,
        "name": store.name,
        "address": store.address,
        "city": store.city,
        "state": store.state,
        "postal_code": store.postal_code,
        "country": store.country,
        "phone": store.phone,
        "email": store.email,
        "opening_hours": store.opening_hours or {},
        "latitude": store.latitude,
        "longitude": store.longitude,
    }


# ---------- Cart ----------
def cart_item_dict(item) -> dict:
    return {
        "id": item.id,
        "product_id": item.product_id,
        "variant_id": item.product_variant_id,
        "quantity": item.quantity,
        "unit_price": as_float(item.unit_price),
        "total_price": as_float(item.line_total),
        "product": product_dict(item.product) if item.product else None,
        "variant": variant_dict(item.variant) if item.variant else None,
    }


def cart_dict(cart) -> dict:
    return {
        "id": cart.id,
        "user_id": cart.user_id,
        "items": [cart_item_dict(i) for i in cart.items],
        "total_quantity": cart.total_quantity,
        "total_amount": as_float(cart.total_amount),
        "updated_at": cart.updated_at,
    }


# ---------- Orders ----------
def order_item_dict(item) -> dict:
    return {
        "id": item.id,
        "product_id": item.product_id,
        "variant_id": item.product_variant_id,
        "product_name": item.product_name,
        "variant_name": item.variant_name,
        "sku": item.sku,
        "quantity": item.quantity,
        "unit_price": as_float(item.unit_price),
        "total_price": as_float(item.total_price),
    }


def tracking_dict(entry) -> dict:
    return {
        "id": entry.id,
        "status": entry.status,
        "description": entry.description,
        "location": entry.location,
        "carrier": entry.carrier,
        "tracking_number": entry.tracking_number,
        "tracked_at": entry.tracked_at,
    }


def order_dict(order, detail: bool = False) -> dict:
    data = {
        "id": order.id,
        "order_number": order.order_number,
        "user_id": order.user_id,
        "status": order.status,
        "subtotal": as_float(order.subtotal),
        "tax_amount": as_float(order.tax_amount),
        "shipping_amount": as_float(order.shipping_amount),
        "discount_amount": as_float(order.discount_amount),
        "total_amount": as_float(order.total_amount),
        "currency": order.currency,
        "payment_method": order.payment_method,
        "payment_status": order.payment_status,
        "items_count": len(order.items),
        "ordered_at": order.ordered_at,
        "shipped_at": order.shipped_at,
        "delivered_at": order.delivered_at,
        "cancelled_at": order.cancelled_at,
    }
    if detail:
        data["notes"] = order.notes
        data["tracking_number"] = order.tracking_number
        data["carrier"] = order.carrier
        data["items"] = [order_item_dict(i) for i in order.items]
        data["billing_address"] = address_dict(order.billing_address)
        data["shipping_address"] = address_dict(order.shipping_address)
    return data


def audit_dict(entry) -> dict:
    return {
        "id": entry.id,
        "product_id": entry.product_id,
        "variant_id": entry.product_variant_id,
        "order_id": entry.order_id,
        "change": entry.change,
        "note": entry.note,
        "performed_by": entry.performed_by,
        "created_at": entry.created_at,
    }


# ---------- Beauty ----------
def tip_dict(tip) -> dict:
    return {
        "id": tip.id,
        "title": tip.title,
        "content": tip.content,
        "category": tip.category,
        "tags": tip.tags or [],
        "target_skin_types": tip.target_skin_types or [],
        "image": tip.image,
        "is_featured": tip.is_featured,
        "author": tip.author.name if tip.author else None,
        "published_at": tip.published_at,
    }


def tutorial_dict(video) -> dict:
    return {
        "id": video.id,
        "title": video.title,
        "description": video.description,
        "video_url": video.video_url,
        "thumbnail": video.thumbnail,
        "duration": video.duration,
        "category": video.category,
        "difficulty_level": video.difficulty_level,
        "tags": video.tags or [],
        "view_count": video.view_count,
        "is_featured": video.is_featured,
        "published_at": video.published_at,
    }


def question_dict(question) -> dict:
    return {
        "id": question.id,
        "question": question.question,
        "question_type": question.question_type,
        "options": [{"value": o.get("value"), "label": o.get("label")} for o in question.options or []],
        "sort_order": question.sort_order,
    }


def quiz_dict(quiz, with_questions: bool = False) -> dict:
    data = {
        "id": quiz.id,
        "title": quiz.title,
        "description": quiz.description,
        "skin_type_focus": quiz.skin_type_focus,
        "questions_count": len(quiz.questions),
    }
    if with_questions:
        data["questions"] = [question_dict(q) for q in quiz.questions]
    return data


def quiz_result_dict(result) -> dict:
    return {
        "id": result.id,
        "quiz_id": result.quiz_id,
        "quiz_title": result.quiz.title if result.quiz else None,
        "answers": result.answers,
        "skin_type_result": result.skin_type_result,
        "recommendations": result.recommendations or [],
        "completed_at": result.completed_at,
    }


# ---------- Community ----------
def comment_dict(comment) -> dict:
    return {
        "id": comment.id,
        "post_id": comment.post_id,
        "parent_id": comment.parent_id,
        "content": comment.content,
        "like_count": comment.like_count,
        "user": {"id": comment.user.id, "name": comment.user.name} if comment.user else None,
        "created_at": comment.created_at,
    }


def post_dict(post, comments=None) -> dict:
    data = {
        "id": post.id,
        "title": post.title,
        "content": post.content,
        "excerpt": post.excerpt,
        "category": post.category,
        "tags": post.tags or [],
        "status": post.status,
        "like_count": post.like_count,
        "comment_count": post.comment_count,
        "view_count": post.view_count,
        "is_featured": post.is_featured,
        "is_published": post.is_published,
        "user": {"id": post.user.id, "name": post.user.name} if post.user else None,
        "published_at": post.published_at,
        "created_at": post.created_at,
    }
    if comments is not None:
        data["comments"] = [comment_dict(c) for c in comments]
    return data


# ---------- Support ----------
def faq_dict(faq) -> dict:
    return {
        "id": faq.id,
        "question": faq.question,
        "answer": faq.answer,
        "category": faq.category,
        "sort_order": faq.sort_order,
    }


def message_dict(message) -> dict:
    return {
        "id": message.id,
        "ticket_id": message.ticket_id,
        "user_id": message.user_id,
        "sender_type": message.sender_type,
        "message": message.message,
        "is_internal": message.is_internal,
        "created_at": message.created_at,
    }


def ticket_dict(ticket, include_internal: bool = False, with_messages: bool = False) -> dict:
    data = {
        "id": ticket.id,
        "ticket_number": ticket.ticket_number,
        "user_id": ticket.user_id,
        "order_id": ticket.order_id,
        "subject": ticket.subject,
        "description": ticket.description,
        "category": ticket.category,
        "priority": ticket.priority,
        "status": ticket.status,
        "assigned_to": ticket.assigned_to,
        "resolution": ticket.resolution,
        "resolved_at": ticket.resolved_at,
        "closed_at": ticket.closed_at,
        "created_at": ticket.created_at,
        "updated_at": ticket.updated_at,
    }
    if with_messages:
        data["messages"] = [
            message_dict(m) for m in ticket.messages if include_internal or not m.is_internal
        ]
    return data
