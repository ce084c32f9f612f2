"""
Metadata endpoints for presentation layers.
"""

from fastapi import APIRouter, Depends

from fleetops.app.core.dependencies import get_current_user
from fleetops.app.domain.lifecycle.transitions import serialize_graphs
from fleetops.app.schemas.meta import TransitionGraphs

router = APIRouter(prefix="/meta", tags=["Meta"])


@router.get("/transitions", response_model=TransitionGraphs)
async def get_transition_graphs(current_user: dict = Depends(get_current_user)):
    """Legal next statuses for vehicles, drivers, trips and maintenance logs."""
    return TransitionGraphs(graphs=serialize_graphs())
