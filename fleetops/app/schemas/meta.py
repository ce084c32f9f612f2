"""
Metadata schemas for presentation layers.
"""

from pydantic import BaseModel
from typing import Dict, List


class TransitionGraphs(BaseModel):
    """Legal next statuses per entity: {entity: {status: [targets]}}."""
    graphs: Dict[str, Dict[str, List[str]]]
