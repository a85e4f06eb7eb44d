import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from app.core.clock import to_naive_utc, utcnow
from app.core.config import Settings
from app.core.errors import (
    AppError,
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationFailedError,
)
from app.modules.categories.repositories.category import CategoryRepository
from app.modules.payments.repositories.pricing_tier import PricingTierRepository
from app.modules.posts.likes.repositories.like import LikeRepository
from app.modules.posts.models.post import Post, PostStatus
from app.modules.posts.repositories.post import PostRepository
from app.modules.posts.schemas.post import (
    PostCategory,
    PostCreate,
    PostImageOut,
    PostOut,
    PostOwner,
    PostStatsOut,
    PostUpdate,
    ProcessResult,
)
from app.modules.posts.views.repositories.view import ViewRepository
from app.modules.posts.views.services.view import ViewContext, ViewService

logger = logging.getLogger("app")

EDITABLE_STATES = (PostStatus.DRAFT, PostStatus.SCHEDULED)
REQUIRED_FIELDS = {"title", "category_id", "description", "price", "location", "contact_number"}


def to_post_out(post: Post, storage, is_liked: Optional[bool] = None, out_cls=PostOut, **extra) -> PostOut:
    """Build the client representation of a post; stored blob keys become preview URLs"""
    owner = None
    if post.user is not None:
        owner = PostOwner(
            id=post.user.id,
            full_name=post.user.full_name,
            profile_picture_url=storage.preview_url(post.user.profile_picture_url),
        )
    category = PostCategory.model_validate(post.category) if post.category is not None else None
    images = [
        PostImageOut(
            id=image.id,
            image_url=image.image_url,
            preview_url=storage.preview_url(image.image_url),
            display_order=image.display_order,
        )
        for image in post.images
    ]
    return out_cls(
        id=post.id,
        user_id=post.user_id,
        category_id=post.category_id,
        title=post.title,
        brand=post.brand,
        description=post.description,
        price=post.price,
        location=post.location,
        gps_location=post.gps_location,
        delivery_method=post.delivery_method,
        contact_number=post.contact_number,
        email_address=post.email_address,
        status=post.status,
        scheduled_publish_time=post.scheduled_publish_time,
        published_at=post.published_at,
        expires_at=post.expires_at,
        view_count=post.view_count,
        like_count=post.like_count,
        pricing_tier_id=post.pricing_tier_id,
        created_at=post.created_at,
        updated_at=post.updated_at,
        user=owner,
        category=category,
        images=images,
        is_liked=is_liked,
        **extra,
    )


def is_publicly_visible(post: Post, now: datetime) -> bool:
    return post.status == PostStatus.PUBLISHED and (post.expires_at is None or post.expires_at > now)


def get_visible_post(posts: PostRepository, post_id: int, viewer_id: Optional[int]) -> Post:
    """Fetch a post the viewer may see; unpublished posts exist only for their owner."""
    post = posts.find_by_id(post_id)
    if not post:
        raise NotFoundError("Post not found")
    if post.user_id != viewer_id and not is_publicly_visible(post, utcnow()):
        raise NotFoundError("Post not found")
    return post


class PostService:
    def __init__(self, db: Session, settings: Settings, storage):
        self.db = db
        self.settings = settings
        self.storage = storage
        self.posts = PostRepository(db)
        self.categories = CategoryRepository(db)
        self.tiers = PricingTierRepository(db)
        self.likes = LikeRepository(db)
        self.views = ViewRepository(db)

    def _get_owned_post(self, post_id: int, user_id: int) -> Post:
        post = self.posts.find_by_id(post_id)
        if not post:
            raise NotFoundError("Post not found")
        if post.user_id != user_id:
            raise ForbiddenError("You can only modify your own posts")
        return post

    def _check_category(self, category_id: int) -> None:
        if not self.categories.find_by_id(category_id):
            raise NotFoundError("Category not found")

    def _check_images(self, images) -> None:
        if images is not None and len(images) > self.settings.MAX_POST_IMAGES:
            raise ValidationFailedError(
                f"A post can have at most {self.settings.MAX_POST_IMAGES} images",
                details=[{"field": "images", "message": f"Maximum {self.settings.MAX_POST_IMAGES} images allowed"}],
            )

    def create_post(self, user_id: int, data: PostCreate) -> PostOut:
        self._check_category(data.category_id)
        self._check_images(data.images)

        if data.pricing_tier_id is not None:
            tier = self.tiers.find_by_id(data.pricing_tier_id)
            if not tier:
                raise NotFoundError("Pricing tier not found")
            if not tier.is_active:
                raise BadRequestError("Pricing tier is not active")

        fields = data.model_dump(exclude={"images"})
        post = self.posts.create_with_images(
            images=[image.model_dump() for image in data.images],
            user_id=user_id,
            status=PostStatus.DRAFT,
            **fields,
        )
        logger.info(f"User {user_id} created post {post.id} with {len(data.images)} images")
        return to_post_out(post, self.storage)

    def get_post(self, post_id: int, viewer_id: Optional[int], context: ViewContext) -> PostOut:
        post = get_visible_post(self.posts, post_id, viewer_id)

        if post.user_id != viewer_id:
            ViewService(self.db, self.settings).record_view(post.id, viewer_id, context)

        is_liked = self.likes.exists(post.id, viewer_id) if viewer_id is not None else False
        return to_post_out(self.posts.find_by_id(post.id), self.storage, is_liked=is_liked)

    def update_post(self, post_id: int, user_id: int, data: PostUpdate) -> PostOut:
        post = self._get_owned_post(post_id, user_id)
        update_data = {
            field: value
            for field, value in data.model_dump(exclude_unset=True, exclude={"images"}).items()
            if value is not None or field not in REQUIRED_FIELDS
        }

        if update_data.get("category_id") is not None:
            self._check_category(update_data["category_id"])

        if data.images is not None:
            self._check_images(data.images)
            post = self.posts.replace_images(post, [image.model_dump() for image in data.images], **update_data)
        else:
            self.posts.update(post, **update_data)
            post = self.posts.find_by_id(post.id)
        return to_post_out(post, self.storage)

    def delete_post(self, post_id: int, user_id: int) -> None:
        post = self._get_owned_post(post_id, user_id)
        if self.posts.has_payments(post.id):
            raise ConflictError("Cannot delete a post that has payment records")

        image_keys = [image.image_url for image in post.images]
        self.posts.delete(post)
        logger.info(f"User {user_id} deleted post {post_id}")

        for key in image_keys:
            if key.startswith("http://") or key.startswith("https://"):
                continue
            try:
                self.storage.delete(key)
            except AppError as e:
                logger.warning(f"Could not delete image {key} of post {post_id}: {e.message}")

    def schedule_post(self, post_id: int, user_id: int, scheduled_time: datetime) -> PostOut:
        post = self._get_owned_post(post_id, user_id)

        scheduled_time = to_naive_utc(scheduled_time)
        if scheduled_time <= utcnow():
            raise ValidationFailedError(
                "Scheduled time must be in the future",
                details=[{"field": "scheduledTime", "message": "Scheduled time must be in the future"}],
            )
        if post.status not in EDITABLE_STATES:
            raise ConflictError(f"Cannot schedule a post with status {post.status.value}")

        self.posts.update(post, status=PostStatus.SCHEDULED, scheduled_publish_time=scheduled_time)
        logger.info(f"Post {post_id} scheduled for {scheduled_time.isoformat()}")
        return to_post_out(self.posts.find_by_id(post_id), self.storage)

    def _publish(self, post: Post, now: datetime) -> None:
        days = post.pricing_tier.visibility_days if post.pricing_tier else self.settings.POST_DEFAULT_EXPIRY_DAYS
        self.posts.update(
            post,
            status=PostStatus.PUBLISHED,
            published_at=now,
            expires_at=now + timedelta(days=days),
            scheduled_publish_time=None,
        )

    def publish_post(self, post_id: int, user_id: int) -> PostOut:
        """Publish now; a pending schedule is discarded"""
        post = self._get_owned_post(post_id, user_id)
        if post.status not in EDITABLE_STATES:
            raise ConflictError(f"Cannot publish a post with status {post.status.value}")

        self._publish(post, utcnow())
        logger.info(f"Post {post_id} published")
        return to_post_out(self.posts.find_by_id(post_id), self.storage)

    def get_stats(self, post_id: int, user_id: int) -> PostStatsOut:
        post = self._get_owned_post(post_id, user_id)
        return PostStatsOut(
            post_id=post.id,
            view_count=post.view_count,
            total_views=self.views.count_for_post(post.id),
            unique_views=self.views.count_for_post(post.id, unique_only=True),
            like_count=post.like_count,
        )

    def process_due_posts(self, now: Optional[datetime] = None) -> ProcessResult:
        """Publish scheduled posts whose time has come and expire lapsed ones"""
        now = now or utcnow()

        due = self.posts.find_due_scheduled(now)
        for post in due:
            self._publish(post, now)

        lapsed = self.posts.find_lapsed(now)
        for post in lapsed:
            self.posts.update(post, status=PostStatus.EXPIRED)

        if due or lapsed:
            logger.info(f"Processed posts: {len(due)} published, {len(lapsed)} expired")
        return ProcessResult(published=len(due), expired=len(lapsed))
