"""
Ownership-filtered persistence for projects, images and products.

Every lookup filters or checks by the caller's user id. Rows that are missing and
rows owned by someone else produce the same UnauthorizedError, so callers cannot
probe for other users' resources.
"""
import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from roomspark.core.database import get_db_session
from roomspark.core.exceptions import PersistenceError, UnauthorizedError, ValidationError
from roomspark.database.models import GeneratedImage, Product, Project, UploadedImage
from roomspark.schemas.products import ProductData, ProductPrice

logger = logging.getLogger(__name__)


def product_to_data(product: Product) -> ProductData:
    """Convert a Product row to the canonical product shape"""
    price = None
    if product.price_value is not None:
        price = ProductPrice(value=product.price_value, currency=product.price_currency or "")

    return ProductData(
        id=product.id,
        title=product.title or "",
        price=price,
        link=product.link or "",
        image=product.image or "",
        description=product.description or "",
        liked=bool(product.liked),
        in_stock=bool(product.in_stock),
        is_affiliate=bool(product.is_affiliate),
        source=product.source or "",
    )


def _price_value(product: ProductData) -> Optional[float]:
    if product.price is None:
        return None
    try:
        return float(product.price.value)
    except (TypeError, ValueError):
        return None


class ProjectService:
    """Row-level CRUD filtered by (id, user_id[, project_id])"""

    def __init__(self, session_factory: async_sessionmaker = None):
        self.session_factory = session_factory

    def session(self):
        return get_db_session(self.session_factory)

    @staticmethod
    def _require_user(user_id: str):
        if not user_id:
            raise UnauthorizedError("Unauthorized", status_code=401)

    # Projects

    async def create_project(self, user_id: str, name: Optional[str] = None) -> Project:
        self._require_user(user_id)
        try:
            async with self.session() as db:
                if not name:
                    count_query = select(func.count()).select_from(Project).where(Project.user_id == user_id)
                    count = (await db.execute(count_query)).scalar() or 0
                    name = f"Project {count + 1}"

                project = Project(user_id=user_id, name=name)
                db.add(project)
                await db.flush()
                await db.refresh(project)
        except SQLAlchemyError as e:
            logger.error(f"Error creating project for user {user_id}: {e}")
            raise PersistenceError("Failed to create project")

        logger.info(f"Created project {project.id} for user {user_id}")
        return project

    async def get_owned_project(self, user_id: str, project_id: str) -> Project:
        """Return the project if user_id owns it; fails closed"""
        self._require_user(user_id)
        if not project_id:
            raise ValidationError("Project ID is required")

        async with self.session() as db:
            result = await db.execute(select(Project).where(Project.id == project_id))
            project = result.scalar_one_or_none()

        if project is None or project.user_id != user_id:
            logger.warning(f"Project ownership check failed: project={project_id} user={user_id}")
            raise UnauthorizedError("Invalid project ID or unauthorized")
        return project

    async def list_projects(self, user_id: str) -> List[Tuple[Project, str]]:
        """Projects newest first, each with the URL of its newest generated image ("" if none)"""
        self._require_user(user_id)
        async with self.session() as db:
            projects = (
                (await db.execute(select(Project).where(Project.user_id == user_id).order_by(Project.created_at.desc())))
                .scalars()
                .all()
            )
            if not projects:
                return []

            generated = (
                (
                    await db.execute(
                        select(GeneratedImage)
                        .where(
                            GeneratedImage.user_id == user_id,
                            GeneratedImage.project_id.in_([p.id for p in projects]),
                        )
                        .order_by(GeneratedImage.created_at.desc())
                    )
                )
                .scalars()
                .all()
            )

        newest: Dict[str, str] = {}
        for image in generated:
            newest.setdefault(image.project_id, image.file_url)

        return [(project, newest.get(project.id, "")) for project in projects]

    async def get_project_details(
        self, user_id: str, project_id: str
    ) -> Tuple[Project, List[UploadedImage], List[GeneratedImage], List[Product]]:
        project = await self.get_owned_project(user_id, project_id)

        async with self.session() as db:
            uploads = (
                (
                    await db.execute(
                        select(UploadedImage)
                        .where(UploadedImage.project_id == project_id, UploadedImage.user_id == user_id)
                        .order_by(UploadedImage.created_at.desc())
                    )
                )
                .scalars()
                .all()
            )
            generated = (
                (
                    await db.execute(
                        select(GeneratedImage)
                        .where(GeneratedImage.project_id == project_id, GeneratedImage.user_id == user_id)
                        .order_by(GeneratedImage.created_at.desc())
                    )
                )
                .scalars()
                .all()
            )
            products = (
                (
                    await db.execute(
                        select(Product)
                        .where(Product.project_id == project_id, Product.user_id == user_id)
                        .order_by(Product.created_at.desc())
                    )
                )
                .scalars()
                .all()
            )

        return project, list(uploads), list(generated), list(products)

    # Images

    async def get_upload(self, user_id: str, upload_id: str, project_id: str) -> UploadedImage:
        self._require_user(user_id)
        if not upload_id:
            raise ValidationError("Image ID is required")

        async with self.session() as db:
            upload = (await db.execute(select(UploadedImage).where(UploadedImage.id == upload_id))).scalar_one_or_none()

        if upload is None or upload.user_id != user_id or upload.project_id != project_id:
            raise UnauthorizedError("File not found or you don't have permission to access it")
        return upload

    async def get_generated_image(self, user_id: str, image_id: str, project_id: str) -> GeneratedImage:
        self._require_user(user_id)
        if not image_id:
            raise ValidationError("Image ID is required")

        async with self.session() as db:
            image = (await db.execute(select(GeneratedImage).where(GeneratedImage.id == image_id))).scalar_one_or_none()

        if image is None or image.user_id != user_id or image.project_id != project_id:
            raise UnauthorizedError("Image not found or you don't have permission to access it")
        return image

    # Products

    async def save_products(self, user_id: str, project_id: str, products: List[ProductData]) -> List[Product]:
        """Insert one row per product in a single transaction; raises PersistenceError"""
        self._require_user(user_id)
        rows = [
            Product(
                id=product.id,
                user_id=user_id,
                project_id=project_id,
                title=product.title,
                price_currency=product.price.currency if product.price else None,
                price_value=_price_value(product),
                link=product.link,
                image=product.image,
                description=product.description,
                in_stock=product.in_stock,
                source=product.source or "",
                is_affiliate=product.is_affiliate,
                liked=product.liked,
            )
            for product in products
        ]

        try:
            async with self.session() as db:
                db.add_all(rows)
        except SQLAlchemyError as e:
            logger.error(f"Error saving {len(rows)} products for project {project_id}: {e}")
            raise PersistenceError("Failed to save products")

        logger.info(f"Saved {len(rows)} products for project {project_id}")
        return rows

    async def get_product(self, user_id: str, product_id: str) -> Product:
        self._require_user(user_id)
        if not product_id:
            raise ValidationError("Product ID is required")

        async with self.session() as db:
            product = (await db.execute(select(Product).where(Product.id == product_id))).scalar_one_or_none()

        if product is None or product.user_id != user_id:
            raise UnauthorizedError("Product not found or you don't have permission to like it")
        return product

    async def set_product_liked(self, user_id: str, product_id: str, liked: bool) -> Product:
        if not isinstance(liked, bool):
            raise ValidationError("Liked value must be a boolean")

        await self.get_product(user_id, product_id)
        try:
            async with self.session() as db:
                product = (
                    await db.execute(select(Product).where(Product.id == product_id, Product.user_id == user_id))
                ).scalar_one()
                product.liked = liked
        except SQLAlchemyError as e:
            logger.error(f"Error updating like status for product {product_id}: {e}")
            raise PersistenceError("Failed to like product")

        logger.info(f"Product {product_id} liked={liked} by user {user_id}")
        return product

    async def list_liked_products(self, user_id: str) -> List[Product]:
        self._require_user(user_id)
        async with self.session() as db:
            result = await db.execute(
                select(Product).where(Product.user_id == user_id, Product.liked.is_(True)).order_by(Product.created_at.desc())
            )
            return list(result.scalars().all())
