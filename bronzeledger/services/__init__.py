# Services package
from bronzeledger.services.ingestion_service import IngestionService

__all__ = ["IngestionService"]
