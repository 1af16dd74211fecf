"""Table definitions. Importing this package registers every table on ``Base``."""

from __future__ import annotations

from .comment import Comment
from .issue import Issue
from .label import IssueLabel, Label
from .project import Project, ProjectTeam
from .team import Team, TeamMember
from .user import User
from .workflow_state import WorkflowState

__all__ = [
    "Comment",
    "Issue",
    "IssueLabel",
    "Label",
    "Project",
    "ProjectTeam",
    "Team",
    "TeamMember",
    "User",
    "WorkflowState",
]
