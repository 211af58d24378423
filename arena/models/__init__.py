"""
Arena Teams – SQLAlchemy ORM models package.

Imports all model classes so the app can discover them through a single
``import arena.models`` before ``Base.metadata.create_all``.
"""

from arena.models.user import User                                  # noqa: F401
from arena.models.competition import Competition                    # noqa: F401
from arena.models.skill import Skill, UserSkill                     # noqa: F401
from arena.models.team import Team, TeamNeed                        # noqa: F401
from arena.models.team_member import TeamMember                     # noqa: F401
from arena.models.join_intent import JoinIntent                     # noqa: F401
from arena.models.match_suggestion import TeamMatchSuggestion       # noqa: F401
from arena.models.team_invitation import TeamInvitation             # noqa: F401
from arena.models.join_request import TeamJoinRequest               # noqa: F401
from arena.models.team_registration import TeamRegistration         # noqa: F401
from arena.models.notification import Notification                  # noqa: F401
from arena.models.team_message import TeamMessage                   # noqa: F401
