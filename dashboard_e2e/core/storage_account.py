"""Storage account used by the dashboard and the jobs under test."""

import logging
from typing import Dict, Optional

from azure.data.tables import TableServiceClient
from azure.storage.blob import BlobServiceClient
from azure.storage.queue import QueueServiceClient

logger = logging.getLogger(__name__)


class WebJobsStorageAccount:
    """Wraps a storage account identified by its connection string."""

    def __init__(
        self,
        connection_string: str,
        blob_service: Optional[BlobServiceClient] = None,
        queue_service: Optional[QueueServiceClient] = None,
        table_service: Optional[TableServiceClient] = None
    ):
        """Initialize the storage account.

        Args:
            connection_string: Storage connection string
            blob_service: Optional blob service client, built lazily otherwise
            queue_service: Optional queue service client, built lazily otherwise
            table_service: Optional table service client, built lazily otherwise
        """
        self._connection_string = connection_string
        self._blob_service = blob_service
        self._queue_service = queue_service
        self._table_service = table_service

    @property
    def connection_string(self) -> str:
        return self._connection_string

    @property
    def blob_service(self) -> BlobServiceClient:
        if self._blob_service is None:
            self._blob_service = BlobServiceClient.from_connection_string(self._connection_string)
        return self._blob_service

    @property
    def queue_service(self) -> QueueServiceClient:
        if self._queue_service is None:
            self._queue_service = QueueServiceClient.from_connection_string(self._connection_string)
        return self._queue_service

    @property
    def table_service(self) -> TableServiceClient:
        if self._table_service is None:
            self._table_service = TableServiceClient.from_connection_string(self._connection_string)
        return self._table_service

    def empty(self) -> Dict[str, int]:
        """Delete every container, queue and table in the account.

        Returns:
            Number of deleted resources per kind
        """
        deleted = {"containers": 0, "queues": 0, "tables": 0}

        for container in self.blob_service.list_containers():
            self.blob_service.delete_container(container.name)
            deleted["containers"] += 1

        for queue in self.queue_service.list_queues():
            self.queue_service.delete_queue(queue.name)
            deleted["queues"] += 1

        for table in self.table_service.list_tables():
            self.table_service.delete_table(table.name)
            deleted["tables"] += 1

        logger.info(
            f"Emptied storage account: {deleted['containers']} containers, "
            f"{deleted['queues']} queues, {deleted['tables']} tables"
        )
        return deleted
