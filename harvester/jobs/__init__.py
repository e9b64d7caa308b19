"""Jobs module: shard workers and their supervisor."""

from harvester.jobs.dedup import DedupCache
from harvester.jobs.gateway import PersistenceGateway
from harvester.jobs.supervisor import Supervisor, WorkerHandle, describe_exit
from harvester.jobs.worker import ScrapeWorker, StopToken, run_worker

__all__ = [
    "DedupCache",
    "PersistenceGateway",
    "ScrapeWorker",
    "StopToken",
    "Supervisor",
    "WorkerHandle",
    "describe_exit",
    "run_worker",
]
