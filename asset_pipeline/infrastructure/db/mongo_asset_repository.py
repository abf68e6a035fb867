# Standard library imports
from typing import Optional, Dict, Any

# External package imports
from motor.motor_asyncio import AsyncIOMotorCollection
from bson import ObjectId
from bson.errors import InvalidId

# Local application imports
from ...domain.repositories.asset_repository import AssetRepository
from ...domain.models.asset import (
    Asset,
    AssetImages,
    AssetStatus,
    ImageRef,
    PROTECTED_STATUSES,
)
from ...domain.constants import AssetFields
from ...utils.datetime_utils import utc_now
from .mongo_connection import get_asset_collection


class MongoAssetRepository(AssetRepository):
    """MongoDB implementation of AssetRepository"""

    def __init__(self, asset_collection: Optional[AsyncIOMotorCollection] = None) -> None:
        self.asset_collection = asset_collection if asset_collection is not None else get_asset_collection()

    @staticmethod
    def _id_filter(asset_id: str) -> Dict[str, Any]:
        """Match by MongoDB ObjectId when the ID parses as one, else by custom "id" field."""
        try:
            return {AssetFields.MONGO_ID: ObjectId(asset_id)}
        except (InvalidId, ValueError, TypeError):
            return {AssetFields.ID: asset_id}

    @classmethod
    def _writable_filter(cls, asset_id: str) -> Dict[str, Any]:
        """ID filter that also refuses to touch statuses owned elsewhere."""
        return {
            **cls._id_filter(asset_id),
            AssetFields.STATUS: {"$nin": [status.value for status in PROTECTED_STATUSES]},
        }

    async def find_by_id(self, asset_id: str) -> Optional[Asset]:
        """
        Find asset by ID

        Args:
            asset_id: The asset ID to find

        Returns:
            Asset domain model if found, None otherwise
        """
        if not asset_id:
            return None

        try:
            document = await self.asset_collection.find_one(self._id_filter(asset_id))
            if document is None:
                return None
            return self._document_to_asset(document)
        except Exception as e:
            raise RuntimeError(f"Error finding asset by ID: {str(e)}")

    async def create(self, asset: Asset) -> Asset:
        """
        Insert a new asset

        Args:
            asset: Asset domain model (id is ignored unless it is a custom ID)

        Returns:
            Saved Asset domain model with ID set
        """
        if not asset:
            raise ValueError("Asset cannot be None")

        try:
            document = self._asset_to_dict(asset)
            result = await self.asset_collection.insert_one(document)
            new_document = await self.asset_collection.find_one({AssetFields.MONGO_ID: result.inserted_id})
            if new_document is None:
                raise RuntimeError("Asset was created but could not be retrieved")
            return self._document_to_asset(new_document)
        except ValueError:
            raise
        except Exception as e:
            raise RuntimeError(f"Error creating asset: {str(e)}")

    async def set_processing_job(self, asset_id: str, job_id: str) -> bool:
        try:
            result = await self.asset_collection.update_one(
                self._id_filter(asset_id),
                {"$set": {AssetFields.PROCESSING_JOB_ID: job_id, AssetFields.UPDATED_AT: utc_now()}},
            )
            return result.matched_count > 0
        except Exception as e:
            raise RuntimeError(f"Error setting processing job on asset: {str(e)}")

    async def mark_active(
        self,
        asset_id: str,
        analysis_result: Dict[str, Any],
        processed_image: Optional[ImageRef] = None,
    ) -> bool:
        """
        Store analysis output and move the asset to active.

        The processed image is only written when one was produced; an existing
        processed image is otherwise left alone.

        Returns:
            True if a writable asset matched
        """
        now = utc_now()
        update: Dict[str, Any] = {
            AssetFields.STATUS: AssetStatus.ACTIVE.value,
            AssetFields.ANALYSIS_RESULT: {**analysis_result, "processed_at": now},
            AssetFields.UPDATED_AT: now,
        }
        if processed_image is not None:
            update[AssetFields.IMAGES_PROCESSED] = {
                "url": processed_image.url,
                "created_at": processed_image.created_at or now,
            }

        try:
            result = await self.asset_collection.update_one(
                self._writable_filter(asset_id), {"$set": update}
            )
            return result.matched_count > 0
        except Exception as e:
            raise RuntimeError(f"Error marking asset active: {str(e)}")

    async def mark_failed(self, asset_id: str, error: str) -> bool:
        """
        Attach the error to the existing analysis metadata and move the asset to failed.

        Returns:
            True if a writable asset matched
        """
        now = utc_now()
        # Pipeline update so the merge works whether analysis_result is missing, null or populated
        pipeline = [
            {
                "$set": {
                    AssetFields.STATUS: AssetStatus.FAILED.value,
                    AssetFields.ANALYSIS_RESULT: {
                        "$mergeObjects": [
                            {"$ifNull": [f"${AssetFields.ANALYSIS_RESULT}", {}]},
                            {"error": error, "failed_at": now},
                        ]
                    },
                    AssetFields.UPDATED_AT: now,
                }
            }
        ]
        try:
            result = await self.asset_collection.update_one(self._writable_filter(asset_id), pipeline)
            return result.matched_count > 0
        except Exception as e:
            raise RuntimeError(f"Error marking asset failed: {str(e)}")

    def _document_to_asset(self, document: Dict[str, Any]) -> Asset:
        """
        Convert MongoDB document to Asset domain model

        Args:
            document: MongoDB document dictionary

        Returns:
            Asset domain model
        """
        if not document:
            raise ValueError("Invalid document: document is None or empty")

        # Prioritize custom "id" field over MongoDB "_id"
        asset_id = None
        if AssetFields.ID in document:
            asset_id = document[AssetFields.ID]
        elif AssetFields.MONGO_ID in document:
            asset_id = str(document[AssetFields.MONGO_ID])

        images = document.get(AssetFields.IMAGES) or {}
        original = images.get("original") or {}
        processed = images.get("processed")

        return Asset(
            id=asset_id,
            owner_id=str(document.get(AssetFields.OWNER_ID, "")),
            category=document.get(AssetFields.CATEGORY, "other"),
            status=document.get(AssetFields.STATUS, AssetStatus.DRAFT.value),
            images=AssetImages(
                original=ImageRef(url=original.get("url", ""), created_at=original.get("created_at")),
                processed=(
                    ImageRef(url=processed["url"], created_at=processed.get("created_at"))
                    if processed and processed.get("url")
                    else None
                ),
            ),
            analysis_result=document.get(AssetFields.ANALYSIS_RESULT),
            processing_job_id=document.get(AssetFields.PROCESSING_JOB_ID),
            created_at=document.get(AssetFields.CREATED_AT),
            updated_at=document.get(AssetFields.UPDATED_AT),
        )

    def _asset_to_dict(self, asset: Asset) -> Dict[str, Any]:
        """
        Convert Asset domain model to MongoDB document

        Args:
            asset: Asset domain model

        Returns:
            Dictionary ready for MongoDB storage
        """
        now = utc_now()
        images: Dict[str, Any] = {"original": asset.images.original.to_dict()}
        if asset.images.processed is not None:
            images["processed"] = asset.images.processed.to_dict()

        asset_dict: Dict[str, Any] = {
            AssetFields.OWNER_ID: asset.owner_id,
            AssetFields.CATEGORY: asset.category.value,
            AssetFields.STATUS: asset.status.value,
            AssetFields.IMAGES: images,
            AssetFields.PROCESSING_JOB_ID: asset.processing_job_id,
            AssetFields.CREATED_AT: asset.created_at or now,
            AssetFields.UPDATED_AT: now,
        }
        if asset.analysis_result is not None:
            asset_dict[AssetFields.ANALYSIS_RESULT] = asset.analysis_result

        # A custom (non-ObjectId) id is kept in the "id" field
        if asset.id:
            try:
                asset_dict[AssetFields.MONGO_ID] = ObjectId(asset.id)
            except (InvalidId, ValueError, TypeError):
                asset_dict[AssetFields.ID] = asset.id

        return asset_dict
