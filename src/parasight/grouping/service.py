"""Group two stored links under one shared subcategory."""

import logging

from ..storage.database import Database
from ..tagging.base import BaseClassifier

logger = logging.getLogger(__name__)


class LinkNotFoundError(LookupError):
    """A link id passed to the grouping service does not exist."""


class GroupingService:
    """Give two links the same subcategory and bucket."""

    def __init__(self, db: Database, classifier: BaseClassifier):
        self.db = db
        self.classifier = classifier

    async def group(self, link_a_id: int, link_b_id: int) -> str:
        """Group link A (the dragged link) with link B (the target).

        Label choice:
        - both grouped, different labels: synthesize a new label
        - B grouped: B's label
        - only A grouped: A's label
        - neither grouped: synthesize a new label

        Both links move to B's bucket, or A's when B is unclassified.
        """
        link_a = self.db.get_link_by_id(link_a_id)
        link_b = self.db.get_link_by_id(link_b_id)
        if link_a is None or link_b is None:
            missing = link_a_id if link_a is None else link_b_id
            raise LinkNotFoundError(f"Link not found: {missing}")

        if link_a.subcategory and link_b.subcategory and link_a.subcategory != link_b.subcategory:
            group_name = await self.classifier.name_group(link_a, link_b)
            logger.info(f"Merged two existing groups into {group_name!r}")
        elif link_b.subcategory:
            group_name = link_b.subcategory
            logger.info(f"Adding to existing group {group_name!r}")
        elif link_a.subcategory:
            group_name = link_a.subcategory
            logger.info(f"Using dragged link's group {group_name!r}")
        else:
            group_name = await self.classifier.name_group(link_a, link_b)
            logger.info(f"Created new group {group_name!r}")

        target_bucket = (link_b.para.bucket if link_b.para else None) or (
            link_a.para.bucket if link_a.para else None
        )

        for link_id in (link_a_id, link_b_id):
            self.db.update_link_category(link_id, bucket=target_bucket, subcategory=group_name)

        return group_name
