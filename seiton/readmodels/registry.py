"""Projector registry - every read model, in the order rebuilds run them"""
from sqlalchemy.orm import Session

from seiton.readmodels.projectors.base import ProjectorOrchestrator
from seiton.readmodels.projectors.inventory import InventoryProjector
from seiton.readmodels.projectors.profile import ProfileProjector
from seiton.readmodels.projectors.tasks import TasksProjector
from seiton.readmodels.projectors.transactions_feed import TransactionsFeedProjector


def build_orchestrator(db: Session) -> ProjectorOrchestrator:
    orchestrator = ProjectorOrchestrator(db)
    orchestrator.register(TasksProjector(db))
    orchestrator.register(ProfileProjector(db))
    orchestrator.register(TransactionsFeedProjector(db))
    orchestrator.register(InventoryProjector(db))
    return orchestrator
