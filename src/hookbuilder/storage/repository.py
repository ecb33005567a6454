from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import BotoCoreError, ClientError

from hookbuilder.errors import AuthRequiredError, UpstreamError

logger = logging.getLogger(__name__)

HOOK_RESULTS = "hookResults"
SCRIPTS = "scripts"
COLLECTIONS = (HOOK_RESULTS, SCRIPTS)
OWNER_INDEX = "ownerId-timestamp-index"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _upstream(exc: Exception, action: str) -> UpstreamError:
    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        return UpstreamError(error.get("Message") or f"Failed to {action}", status=status)
    return UpstreamError(f"Failed to {action}: {exc}")


class DocumentStore:
    """Owner-scoped document collections kept in DynamoDB.

    Every collection maps to the table ``<table_prefix><collection>`` keyed by
    ``id`` with a global secondary index on ``ownerId``/``timestamp``. All
    operations act on behalf of ``auth.current_user``.
    """

    def __init__(
        self,
        auth: Any,
        table_prefix: str = "hookbuilder-",
        table_factory: Optional[Callable[[str], Any]] = None,
        region_name: Optional[str] = None,
    ) -> None:
        self._auth = auth
        self.table_prefix = table_prefix
        self.region_name = region_name
        self._table_factory = table_factory
        self._tables: Dict[str, Any] = {}

    def _table(self, collection: str) -> Any:
        if collection not in COLLECTIONS:
            raise ValueError(f"Unknown collection '{collection}'")
        if collection not in self._tables:
            if self._table_factory is None:
                self._table_factory = boto3.resource("dynamodb", region_name=self.region_name).Table
            self._tables[collection] = self._table_factory(f"{self.table_prefix}{collection}")
        return self._tables[collection]

    def _owner_id(self, action: str) -> str:
        user = getattr(self._auth, "current_user", None)
        if user is None:
            raise AuthRequiredError(f"You must be logged in to {action}.")
        return user.user_id

    def create(self, collection: str, document: Mapping[str, Any]) -> str:
        owner_id = self._owner_id("save")
        doc_id = uuid.uuid4().hex
        item = {key: value for key, value in document.items() if value is not None}
        item.update({"id": doc_id, "ownerId": owner_id, "timestamp": utc_now_iso()})
        try:
            self._table(collection).put_item(Item=item)
        except (ClientError, BotoCoreError) as exc:
            raise _upstream(exc, f"save to {collection}") from exc
        logger.info("Stored %s document %s", collection, doc_id)
        return doc_id

    def query(self, collection: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Return the signed-in user's documents, newest first."""
        owner_id = self._owner_id("view saved items")
        kwargs: Dict[str, Any] = dict(
            IndexName=OWNER_INDEX,
            KeyConditionExpression=Key("ownerId").eq(owner_id),
            ScanIndexForward=False,
        )
        if limit is not None:
            kwargs["Limit"] = limit
        items: List[Dict[str, Any]] = []
        try:
            while limit is None or len(items) < limit:
                response = self._table(collection).query(**kwargs)
                items.extend(response.get("Items", []))
                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    break
                kwargs["ExclusiveStartKey"] = last_key
        except (ClientError, BotoCoreError) as exc:
            raise _upstream(exc, f"load {collection}") from exc
        return items if limit is None else items[:limit]

    def delete(self, collection: str, doc_id: str) -> None:
        owner_id = self._owner_id("delete")
        try:
            self._table(collection).delete_item(
                Key={"id": doc_id},
                ConditionExpression=Attr("ownerId").eq(owner_id),
            )
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                raise UpstreamError(f"Document {doc_id} was not found") from exc
            raise _upstream(exc, f"delete from {collection}") from exc
        except BotoCoreError as exc:
            raise _upstream(exc, f"delete from {collection}") from exc
        logger.info("Deleted %s document %s", collection, doc_id)
