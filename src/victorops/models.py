from datetime import datetime
from enum import StrEnum
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field


class RequestDetails(BaseModel):
    """Raw metadata of a single call, returned next to every typed payload."""

    model_config = ConfigDict(frozen=True)

    status_code: int
    # empty when the call had no body
    request_body: str = ""
    response_body: str = ""


class PagedEntity(BaseModel):
    name: str | None = None
    slug: str | None = None


class PagedPolicy(BaseModel):
    policy: PagedEntity | None = None
    team: PagedEntity | None = None


class Transition(BaseModel):
    # The incident API capitalises these keys
    Name: str | None = None
    At: datetime | None = None
    Message: str | None = None
    By: str | None = None
    Manually: bool | None = None
    alertId: str | None = None
    alertUrl: str | None = None


class Incident(BaseModel):
    alertCount: int | None = None
    currentPhase: str | None = None
    entityDisplayName: str | None = None
    entityId: str | None = None
    entityState: str | None = None
    entityType: str | None = None
    host: str | None = None
    incidentNumber: str | None = None
    lastAlertId: str | None = None
    lastAlertTime: datetime | None = None
    service: str | None = None
    startTime: datetime | None = None
    pagedTeams: list[str] | None = None
    pagedUsers: list[str] | None = None
    pagedPolicies: list[PagedPolicy] | None = None
    transitions: list[Transition] | None = None

    def __str__(self):
        return f"<Incident #{self.incidentNumber} {self.currentPhase}>"


class IncidentResponse(BaseModel):
    incidents: list[Incident] | None = None


class User(BaseModel):
    firstName: str | None = None
    lastName: str | None = None
    username: str | None = None
    email: str | None = None
    admin: bool | None = None
    expirationHours: int | None = None
    createdAt: str | None = None
    passwordLastUpdated: str | None = None
    verified: bool | None = None

    def __str__(self):
        return f"User username={self.username}"


class UserList(BaseModel):
    """v1 listing. The API wraps the users in an extra list."""

    users: list[list[User]]


class UserListV2(BaseModel):
    users: list[User]


class Team(BaseModel):
    name: str | None = None
    slug: str | None = None
    memberCount: int | None = None
    version: int | None = None
    isDefaultTeam: bool | None = None

    def __str__(self):
        return f"<Team: {self.slug}>"


class TeamMembers(BaseModel):
    members: list[User] | None = None


class Admin(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str | None = None
    firstName: str | None = None
    lastName: str | None = None
    selfUrl: str | None = Field(default=None, alias="_selfUrl")


class TeamAdmins(BaseModel):
    admin: list[Admin] | None = None


class EmailsResponse(BaseModel):
    # Entries are kept loose; only "label" and "id" are ever inspected
    contactMethods: list[dict[str, Any]]


class ApiTeam(BaseModel):
    name: str | None = None
    slug: str | None = None


class ApiEscalationPolicy(BaseModel):
    name: str | None = None
    slug: str | None = None


class ApiUser(BaseModel):
    username: str | None = None


class ApiOnCallOverride(BaseModel):
    origOnCallUser: ApiUser | None = None
    overrideOnCallUser: ApiUser | None = None
    start: datetime | None = None
    end: datetime | None = None
    policy: ApiEscalationPolicy | None = None


class ApiOnCallRoll(BaseModel):
    start: datetime | None = None
    end: datetime | None = None
    onCallUser: ApiUser | None = None
    isRoll: bool | None = None


class ApiOnCallEntry(BaseModel):
    onCallUser: ApiUser | None = None
    overrideOnCallUser: ApiUser | None = None
    onCallType: str | None = None
    rotationName: str | None = None
    shiftName: str | None = None
    shiftRoll: datetime | None = None
    rolls: list[ApiOnCallRoll] | None = None


class ApiEscalationPolicySchedule(BaseModel):
    policy: ApiEscalationPolicy | None = None
    schedule: list[ApiOnCallEntry] | None = None
    overrides: list[ApiOnCallOverride] | None = None


class ApiTeamSchedule(BaseModel):
    team: ApiTeam | None = None
    schedules: list[ApiEscalationPolicySchedule] | None = None


class ApiUserSchedule(BaseModel):
    teamSchedules: list[ApiTeamSchedule] | None = None


class TakeRequest(BaseModel):
    fromUser: str | None = None
    toUser: str | None = None


class TakeResponse(BaseModel):
    result: str | None = None


class EscalationPolicyStepEntry(BaseModel):
    executionType: str | None = None
    user: dict[str, str] | None = None
    rotationGroup: dict[str, str] | None = None
    webhook: dict[str, str] | None = None
    email: dict[str, str] | None = None
    targetPolicy: dict[str, str] | None = None


class EscalationPolicySteps(BaseModel):
    # seconds before moving on to the next step
    timeout: int
    entries: list[EscalationPolicyStepEntry]


class EscalationPolicy(BaseModel):
    name: str
    teamSlug: str
    ignoreCustomPagingPolicies: bool
    steps: list[EscalationPolicySteps]
    slug: str

    def __str__(self):
        return f"EscalationPolicy(name={self.name}, team={self.teamSlug})"


class EscalationPolicyListDetail(BaseModel):
    name: str
    slug: str


class EscalationPolicyListElement(BaseModel):
    policy: EscalationPolicyListDetail
    team: EscalationPolicyListDetail


class EscalationPolicyList(BaseModel):
    policies: list[EscalationPolicyListElement]


class RoutingKey(BaseModel):
    routingKey: str | None = None
    targets: list[str] | None = None


class RoutingKeyResponseTargets(BaseModel):
    policySlug: str | None = None


class RoutingKeyResponse(BaseModel):
    routingKey: str | None = None
    targets: list[RoutingKeyResponseTargets] | None = None


class RoutingKeyResponseList(BaseModel):
    routingKeys: list[RoutingKeyResponse] | None = None


class ContactType(StrEnum):
    PHONE = "phone"
    EMAIL = "email"
    DEVICE = "device"

    @property
    def endpoint_noun(self) -> str:
        """Path segment used under ``/contact-methods/``."""
        return f"{self.value}s"

    @classmethod
    def from_notification_type(cls, notification_type: str) -> Self | None:
        return _NOTIFICATION_TYPES.get(notification_type)


_NOTIFICATION_TYPES = {
    "push": ContactType.DEVICE,
    "email": ContactType.EMAIL,
    "phone": ContactType.PHONE,
    "sms": ContactType.PHONE,
}


class Contact(BaseModel):
    phone: str | None = None
    email: str | None = None
    label: str | None = None
    rank: int | None = None
    extId: str | None = None
    id: int | None = None
    value: str | None = None
    verified: str | None = None

    def contact_type(self) -> ContactType | None:
        if self.phone is not None:
            return ContactType.PHONE
        if self.email is not None:
            return ContactType.EMAIL
        return None


class ContactGroup(BaseModel):
    contactMethods: list[Contact]


class AllContactResponse(BaseModel):
    phones: ContactGroup | None = None
    emails: ContactGroup | None = None
    devices: ContactGroup | None = None


class GetAllContactResponse(BaseModel):
    contactMethods: list[Contact] | None = None
