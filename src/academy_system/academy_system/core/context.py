from __future__ import annotations

from dataclasses import dataclass

from ..grading.model import DEFAULT_GRADING_CONFIG, GradingConfiguration
from ..users.model import User


@dataclass(frozen=True)
class RequestContext:
    """Identity and grading settings passed explicitly into services.

    Built per request by the controller layer; the grading configuration is the
    one loaded at login and stays fixed for the whole session.
    """

    user: User
    grading_config: GradingConfiguration = DEFAULT_GRADING_CONFIG
