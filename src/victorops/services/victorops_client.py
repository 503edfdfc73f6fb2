import functools
import ipaddress
import json
import logging
import re
from collections.abc import Mapping
from typing import Any, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticSerializationError

from victorops.config import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, ClientConfig
from victorops.errors import (
    DeserializationError,
    InvalidHeaderError,
    InvalidInputError,
    NotFoundError,
    SerializationError,
    TransportError,
    UrlParseError,
    error_for_status,
)
from victorops.models import (
    AllContactResponse,
    ApiTeamSchedule,
    ApiUserSchedule,
    Contact,
    ContactType,
    EmailsResponse,
    EscalationPolicy,
    EscalationPolicyList,
    GetAllContactResponse,
    Incident,
    IncidentResponse,
    RequestDetails,
    RoutingKey,
    RoutingKeyResponse,
    RoutingKeyResponseList,
    TakeRequest,
    TakeResponse,
    Team,
    TeamAdmins,
    TeamMembers,
    User,
    UserList,
    UserListV2,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Every public call resolves to the payload plus the raw call metadata
ApiResult = tuple[T, RequestDetails]

API_ID_HEADER = "X-VO-Api-Id"
API_KEY_HEADER = "X-VO-Api-Key"

# Visible ASCII, inner spaces or tabs only; h11 refuses surrounding whitespace
_HEADER_VALUE = re.compile(r"^(?:[\x21-\x7e](?:[\t\x20-\x7e]*[\x21-\x7e])?)?$")
_HOST_LABEL = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?$")


@functools.cache
def _adapter(response_type: Any) -> TypeAdapter:
    return TypeAdapter(response_type)


def _valid_host(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
        return True
    except ValueError:
        pass
    labels = host.rstrip(".").split(".")
    return len(host) <= 253 and all(_HOST_LABEL.match(label) for label in labels)


def _parse_base_url(base_url: str) -> httpx.URL:
    try:
        url = httpx.URL(base_url)
        host = url.raw_host.decode("ascii")
        port = url.port
    except (httpx.InvalidURL, TypeError, UnicodeDecodeError) as exc:
        raise UrlParseError(f"{base_url!r}: {exc}") from exc
    if url.scheme not in ("http", "https") or not host:
        raise UrlParseError(f"{base_url!r} is not an absolute http(s) URL")
    if not _valid_host(host):
        raise UrlParseError(f"{base_url!r} has an invalid host")
    if port is not None and not 1 <= port <= 65535:
        raise UrlParseError(f"{base_url!r} has an out of range port")
    if url.query or url.fragment:
        raise UrlParseError(f"{base_url!r} must not carry a query or fragment")
    return url


def _check_header(name: str, value: str) -> None:
    if not isinstance(value, str) or not _HEADER_VALUE.match(value):
        raise InvalidHeaderError(name)


def _require(**arguments: str | None) -> None:
    for name, value in arguments.items():
        if value is None or not str(value).strip():
            raise InvalidInputError(f"{name} must not be empty")


def _segment(value: Any) -> str:
    return quote(str(value), safe="")


def _encode(payload: BaseModel | Mapping[str, Any]) -> str:
    try:
        if isinstance(payload, BaseModel):
            return payload.model_dump_json(by_alias=True, exclude_none=True)
        return json.dumps(payload)
    except (TypeError, ValueError, PydanticSerializationError) as exc:
        raise SerializationError(str(exc)) from exc


class VictorOpsClient:
    """
    Async client for the VictorOps (Splunk On-Call) public REST API.

    Every operation returns a ``(payload, RequestDetails)`` tuple. Operations
    without a response payload return ``None`` in the first slot.

    Example:
        >>> async with VictorOpsClient("api-id", "api-key") as client:
        ...     incidents, details = await client.get_incidents()
        ...     print(details.status_code, len(incidents.incidents or []))
    """

    def __init__(
        self,
        api_id: str,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        try:
            config = ClientConfig(base_url=base_url, api_id=api_id, api_key=api_key, timeout=timeout)
        except PydanticValidationError as exc:
            raise InvalidInputError(str(exc)) from exc
        self._base = _parse_base_url(config.base_url)
        self._base_url = config.base_url.rstrip("/")
        _check_header(API_ID_HEADER, config.api_id)
        _check_header(API_KEY_HEADER, config.api_key)
        self.config = config
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout),
            headers={
                API_ID_HEADER: config.api_id,
                API_KEY_HEADER: config.api_key,
                "Accept": "application/json",
            },
            transport=transport,
        )

    @classmethod
    def from_config(
        cls, config: ClientConfig, *, transport: httpx.AsyncBaseTransport | None = None
    ) -> "VictorOpsClient":
        return cls(config.api_id, config.api_key, config.base_url, config.timeout, transport=transport)

    @property
    def base_url(self) -> str:
        return self._base_url

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "VictorOpsClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()

    def __str__(self):
        return f"VictorOps Client: publicBaseURL: {self._base_url}"

    def _url(self, path: str) -> httpx.URL:
        full_path = f"{self._base.path.rstrip('/')}/api-public/{path.lstrip('/')}"
        try:
            return self._base.copy_with(path=full_path)
        except httpx.InvalidURL as exc:
            raise UrlParseError(f"{full_path!r}: {exc}") from exc

    async def _request(
        self,
        method: str,
        path: str,
        response_type: Any = None,
        *,
        payload: BaseModel | Mapping[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> ApiResult[Any]:
        url = self._url(path)

        headers: dict[str, str] = {}
        request_body = ""
        if payload is not None:
            request_body = _encode(payload)
            headers["Content-Type"] = "application/json"

        logger.debug("VictorOps request: %s %s", method, url)
        try:
            response = await self._client.request(
                method,
                url,
                content=request_body or None,
                params=params,
                headers=headers,
            )
        except httpx.InvalidURL as exc:
            raise UrlParseError(str(exc)) from exc
        except httpx.RequestError as exc:
            raise TransportError(str(exc) or type(exc).__name__) from exc

        details = RequestDetails(
            status_code=response.status_code,
            request_body=request_body,
            response_body=response.text,
        )
        logger.debug("VictorOps response: %s %s -> %s", method, url, details.status_code)

        if details.status_code >= 400:
            raise error_for_status(details.status_code, details.response_body)

        if response_type is None:
            return None, details
        try:
            data = _adapter(response_type).validate_json(details.response_body)
        except PydanticValidationError as exc:
            raise DeserializationError(str(exc)) from exc
        return data, details

    # Incidents

    async def get_incident(self, incident_id: int) -> ApiResult[Incident]:
        return await self._request("GET", f"v1/incidents/{_segment(incident_id)}", Incident)

    async def get_incidents(self) -> ApiResult[IncidentResponse]:
        return await self._request("GET", "v1/incidents", IncidentResponse)

    # Users

    async def create_user(self, user: User) -> ApiResult[User]:
        return await self._request("POST", "v1/user", User, payload=user)

    async def get_user(self, username: str) -> ApiResult[User]:
        _require(username=username)
        return await self._request("GET", f"v1/user/{_segment(username)}", User)

    async def delete_user(self, username: str, replacement_user: str) -> ApiResult[None]:
        _require(username=username, replacement_user=replacement_user)
        return await self._request(
            "DELETE",
            f"v1/user/{_segment(username)}",
            payload={"replacement": replacement_user},
        )

    async def get_all_users(self) -> ApiResult[UserList]:
        """List users through the v1 endpoint (users nested one list deeper)."""
        return await self._request("GET", "v1/user", UserList)

    async def get_all_users_v2(self) -> ApiResult[UserListV2]:
        return await self._request("GET", "v2/user", UserListV2)

    async def get_user_by_email(self, email: str) -> ApiResult[UserListV2]:
        _require(email=email)
        return await self._request("GET", "v2/user", UserListV2, params={"email": email})

    async def update_user(self, user: User) -> ApiResult[User]:
        if not user.username:
            raise InvalidInputError("Username is required for user update")
        return await self._request("PUT", f"v1/user/{_segment(user.username)}", User, payload=user)

    async def get_user_default_email_contact_id(self, username: str) -> ApiResult[float]:
        """Return the id of the email contact method labelled ``Default``.

        Raises ``NotFoundError`` when the user has no such contact method.
        """
        _require(username=username)
        emails, details = await self._request(
            "GET", f"v1/user/{_segment(username)}/contact-methods/emails", EmailsResponse
        )
        for method in emails.contactMethods:
            contact_id = method.get("id")
            if method.get("label") != "Default" or isinstance(contact_id, bool):
                continue
            if isinstance(contact_id, (int, float)):
                return float(contact_id), details
        raise NotFoundError(404, f"no default email contact method for {username}")

    # Teams

    async def create_team(self, team: Team) -> ApiResult[Team]:
        return await self._request("POST", "v1/team", Team, payload=team)

    async def get_team(self, team_id: str) -> ApiResult[Team]:
        _require(team_id=team_id)
        return await self._request("GET", f"v1/team/{_segment(team_id)}", Team)

    async def get_all_teams(self) -> ApiResult[list[Team]]:
        return await self._request("GET", "v1/team", list[Team])

    async def get_team_members(self, team_id: str) -> ApiResult[TeamMembers]:
        _require(team_id=team_id)
        return await self._request("GET", f"v1/team/{_segment(team_id)}/members", TeamMembers)

    async def delete_team(self, team_id: str) -> ApiResult[None]:
        _require(team_id=team_id)
        return await self._request("DELETE", f"v1/team/{_segment(team_id)}")

    async def update_team(self, team: Team) -> ApiResult[Team]:
        if not team.name:
            raise InvalidInputError("Team name is required for team update")
        return await self._request("PUT", f"v1/team/{_segment(team.name)}", Team, payload=team)

    async def add_team_member(self, team_id: str, username: str) -> ApiResult[None]:
        _require(team_id=team_id, username=username)
        return await self._request(
            "POST", f"v1/team/{_segment(team_id)}/members", payload={"username": username}
        )

    async def remove_team_member(self, team_id: str, username: str, replacement: str) -> ApiResult[None]:
        _require(team_id=team_id, username=username, replacement=replacement)
        return await self._request(
            "DELETE",
            f"v1/team/{_segment(team_id)}/members/{_segment(username)}",
            payload={"replacement": replacement},
        )

    async def is_team_member(self, team_id: str, username: str) -> ApiResult[bool]:
        _require(team_id=team_id, username=username)
        members, details = await self.get_team_members(team_id)
        wanted = username.casefold()
        found = any(
            member.username is not None and member.username.casefold() == wanted
            for member in members.members or []
        )
        return found, details

    async def get_team_admins(self, team_id: str) -> ApiResult[TeamAdmins]:
        _require(team_id=team_id)
        return await self._request("GET", f"v1/team/{_segment(team_id)}/admins", TeamAdmins)

    # On-call schedules

    async def get_api_team_schedule(
        self, team_slug: str, days_forward: int = 7, days_skip: int = 0, step: int = 0
    ) -> ApiResult[ApiTeamSchedule]:
        _require(team_slug=team_slug)
        return await self._request(
            "GET",
            f"v2/team/{_segment(team_slug)}/oncall/schedule",
            ApiTeamSchedule,
            params={"daysForward": days_forward, "daysSkip": days_skip, "step": step},
        )

    async def get_user_on_call_schedule(
        self, username: str, days_forward: int = 7, days_skip: int = 0, step: int = 0
    ) -> ApiResult[ApiUserSchedule]:
        _require(username=username)
        return await self._request(
            "GET",
            f"v2/user/{_segment(username)}/oncall/schedule",
            ApiUserSchedule,
            params={"daysForward": days_forward, "daysSkip": days_skip, "step": step},
        )

    async def take_on_call_for_team(self, team_slug: str, request: TakeRequest) -> ApiResult[TakeResponse]:
        _require(team_slug=team_slug)
        return await self._request(
            "PATCH", f"v1/team/{_segment(team_slug)}/oncall/user", TakeResponse, payload=request
        )

    async def take_on_call_for_policy(self, policy_slug: str, request: TakeRequest) -> ApiResult[TakeResponse]:
        _require(policy_slug=policy_slug)
        return await self._request(
            "PATCH", f"v1/policies/{_segment(policy_slug)}/oncall/user", TakeResponse, payload=request
        )

    # Escalation policies

    async def create_escalation_policy(self, escalation_policy: EscalationPolicy) -> ApiResult[EscalationPolicy]:
        return await self._request("POST", "v1/policies", EscalationPolicy, payload=escalation_policy)

    async def get_all_escalation_policies(self) -> ApiResult[EscalationPolicyList]:
        return await self._request("GET", "v1/policies", EscalationPolicyList)

    async def get_escalation_policy(self, escalation_policy_id: str) -> ApiResult[EscalationPolicy]:
        _require(escalation_policy_id=escalation_policy_id)
        return await self._request("GET", f"v1/policies/{_segment(escalation_policy_id)}", EscalationPolicy)

    async def delete_escalation_policy(self, escalation_policy_id: str) -> ApiResult[None]:
        _require(escalation_policy_id=escalation_policy_id)
        return await self._request("DELETE", f"v1/policies/{_segment(escalation_policy_id)}")

    # Routing keys

    async def create_routing_key(self, routing_key: RoutingKey) -> ApiResult[RoutingKey]:
        return await self._request("POST", "v1/org/routing-keys", RoutingKey, payload=routing_key)

    async def get_all_routing_keys(self) -> ApiResult[RoutingKeyResponseList]:
        return await self._request("GET", "v1/org/routing-keys", RoutingKeyResponseList)

    async def get_routing_key(self, key_name: str) -> ApiResult[RoutingKeyResponse | None]:
        """Look a routing key up by name. There is no single-key endpoint."""
        _require(key_name=key_name)
        keys, details = await self.get_all_routing_keys()
        for key in keys.routingKeys or []:
            if key.routingKey == key_name:
                return key, details
        return None, details

    # Contact methods

    async def create_contact(self, username: str, contact: Contact) -> ApiResult[Contact]:
        _require(username=username)
        contact_type = contact.contact_type()
        if contact_type is None:
            raise InvalidInputError("Contact must have either phone or email")
        return await self._request(
            "POST",
            f"v1/user/{_segment(username)}/contact-methods/{contact_type.endpoint_noun}",
            Contact,
            payload=contact,
        )

    async def get_contact(self, username: str, contact_ext_id: str, contact_type: ContactType) -> ApiResult[Contact]:
        _require(username=username, contact_ext_id=contact_ext_id)
        return await self._request(
            "GET",
            f"v1/user/{_segment(username)}/contact-methods/{contact_type.endpoint_noun}/{_segment(contact_ext_id)}",
            Contact,
        )

    async def get_all_contacts(self, username: str) -> ApiResult[AllContactResponse]:
        _require(username=username)
        return await self._request("GET", f"v1/user/{_segment(username)}/contact-methods", AllContactResponse)

    async def delete_contact(self, username: str, contact_ext_id: str, contact_type: ContactType) -> ApiResult[None]:
        _require(username=username, contact_ext_id=contact_ext_id)
        return await self._request(
            "DELETE",
            f"v1/user/{_segment(username)}/contact-methods/{contact_type.endpoint_noun}/{_segment(contact_ext_id)}",
        )

    async def get_contact_by_id(
        self, username: str, contact_id: int, contact_type: ContactType
    ) -> ApiResult[Contact | None]:
        _require(username=username)
        # Device id 0 means "every device" and has no server-side record
        if contact_type is ContactType.DEVICE and contact_id == 0:
            all_devices = Contact(label="All Devices", rank=0, id=0, value="All Devices")
            return all_devices, RequestDetails(status_code=200)

        contacts, details = await self._request(
            "GET",
            f"v1/user/{_segment(username)}/contact-methods/{contact_type.endpoint_noun}",
            GetAllContactResponse,
        )
        for contact in contacts.contactMethods or []:
            if contact.id == contact_id:
                return contact, details
        return None, details
