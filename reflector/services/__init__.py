"""Services layer for reflector."""

from reflector.services.activity import ActivityService, activity_service
from reflector.services.admin import AdminService, admin_service
from reflector.services.ingestor import IngestionResult, ResultIngestor, result_ingestor
from reflector.services.job_store import BatchJobStore, batch_job_store
from reflector.services.notifier import EmailNotifier, LogNotifier, Notifier, get_notifier
from reflector.services.openai_batch import OpenAIBatchClient, batch_client
from reflector.services.poller import PollScheduler, poll_scheduler
from reflector.services.request_builder import RequestBuilder, request_builder
from reflector.services.submitter import BatchSubmitter, batch_submitter

__all__ = [
    "ActivityService",
    "activity_service",
    "AdminService",
    "admin_service",
    "IngestionResult",
    "ResultIngestor",
    "result_ingestor",
    "BatchJobStore",
    "batch_job_store",
    "EmailNotifier",
    "LogNotifier",
    "Notifier",
    "get_notifier",
    "OpenAIBatchClient",
    "batch_client",
    "PollScheduler",
    "poll_scheduler",
    "RequestBuilder",
    "request_builder",
    "BatchSubmitter",
    "batch_submitter",
]
