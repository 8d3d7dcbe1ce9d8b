"""Jira REST API client: endpoint table plus one generic dispatch."""

import inspect
from pathlib import Path
from typing import Any, BinaryIO, Mapping, Optional, Union

import httpx

from jira_rest.client.dispatch import Download, JiraResponse, RequestDispatcher, RequestOptions
from jira_rest.client.endpoints import Endpoint
from jira_rest.client.urls import ApiFamily, UrlBuilder
from jira_rest.config import JiraConfig, load_config
from jira_rest.utils.logging import get_logger

logger = get_logger(__name__)

AGILE = ApiFamily.AGILE
GREENHOPPER = ApiFamily.GREENHOPPER
WEBHOOK = ApiFamily.WEBHOOK
DEV_STATUS = ApiFamily.DEV_STATUS

DEFAULT_SEARCH_FIELDS = ("summary", "status", "assignee", "description")
DEFAULT_SEARCH_EXPAND = ("schema", "names")

_PAGE = ("startAt", "maxResults")
_PAGE_DEFAULTS = {"start_at": 0, "max_results": 50}
_BOARD_ISSUES = ("startAt", "maxResults", "jql", "validateQuery", "fields")
_BOARD_ISSUES_DEFAULTS = {**_PAGE_DEFAULTS, "validate_query": True}

# Coroutine methods that are not Jira operations
_PLUMBING = frozenset({"close", "call", "call_endpoint", "do_request", "do_plain_request"})


class JiraClient:
    """Async Jira REST API client.

    Operations are declared as ``Endpoint`` descriptors and all go through
    :meth:`call_endpoint`. A handful of operations that post-process results
    or compose other calls are written out as methods.

    Supports Basic Auth, OAuth1 and bearer tokens, selected once from the
    configuration.
    """

    def __init__(self, config: JiraConfig, http: Optional[httpx.AsyncClient] = None):
        """Initialize Jira client.

        Args:
            config: Jira configuration object
            http: HTTP client to send requests with; one is created (and
                owned) when omitted
        """
        self.config = config
        self.urls = UrlBuilder(config)
        self.timeout = httpx.Timeout(config.timeout)

        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(timeout=self.timeout, verify=config.strict_ssl)

        credential = config.credential
        self.dispatcher = RequestDispatcher(self.http, credential, self.timeout)

        logger.info(
            f"Initialized Jira client for {config.server_url} (auth: {credential.kind})"
        )

    @classmethod
    def from_options(cls, **options: Any) -> "JiraClient":
        """Create a client from keyword configuration options.

        Raises:
            ConfigError: If the options are invalid or name more than one
                credential scheme
        """
        return cls(load_config(**options))

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http:
            await self.http.aclose()
        logger.debug("Jira client closed")

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    # ================== Dispatch ==================

    @classmethod
    def endpoints(cls) -> dict[str, Endpoint]:
        """All declared endpoints by name."""
        table: dict[str, Endpoint] = {}
        for klass in reversed(cls.__mro__):
            for name, value in vars(klass).items():
                if isinstance(value, Endpoint):
                    table[name] = value
        return table

    @classmethod
    def operations(cls) -> list[str]:
        """Names of every public operation, declared or composite."""
        names = set(cls.endpoints())
        for name, _ in inspect.getmembers(cls, inspect.iscoroutinefunction):
            if not name.startswith("_") and name not in _PLUMBING:
                names.add(name)
        return sorted(names)

    async def call_endpoint(self, endpoint: Endpoint, *args: Any, **kwargs: Any) -> Any:
        """Bind arguments, build the request and dispatch it."""
        arguments = endpoint.bind(*args, **kwargs)
        options = endpoint.build_request(self.urls, arguments)
        result = await self.dispatcher.do_request(options, binary=endpoint.binary)
        if endpoint.extract and isinstance(result, dict):
            return result.get(endpoint.extract)
        return result

    async def call(self, name: str, *args: Any, **kwargs: Any) -> Any:
        """Invoke an operation by name.

        Raises:
            KeyError: If no operation has that name
        """
        if name not in self.operations():
            raise KeyError(f"Unknown Jira operation: {name}")
        return await getattr(self, name)(*args, **kwargs)

    async def do_request(self, options: RequestOptions) -> Any:
        """Send prepared request options and return the decoded body."""
        return await self.dispatcher.do_request(options)

    async def do_plain_request(self, options: RequestOptions) -> JiraResponse:
        """Send prepared request options and return the full response."""
        return await self.dispatcher.do_plain_request(options)

    # ================== Issue Operations ==================

    find_issue = Endpoint(
        "GET",
        "issue/{issue_number}",
        query=("expand", "fields", "properties", "fieldsByKeys"),
        doc="Find an issue by key or id.",
    )
    add_new_issue = Endpoint("POST", "issue", body="issue", doc="Create an issue.")
    update_issue = Endpoint(
        "PUT",
        "issue/{issue_id}",
        body="issue_update",
        extra_query=True,
        doc="Update an issue; extra keyword arguments become query parameters.",
    )
    delete_issue = Endpoint("DELETE", "issue/{issue_id}")
    issue_edit_meta = Endpoint("GET", "issue/{issue_id}/editmeta", doc="Get issue edit metadata.")
    get_issue_property = Endpoint("GET", "issue/{issue_number}/properties/{property_key}")
    get_issue_changelog = Endpoint(
        "GET",
        "issue/{issue_number}/changelog",
        query=_PAGE,
        defaults=_PAGE_DEFAULTS,
    )
    get_issue_watchers = Endpoint(
        "GET",
        "issue/{issue_number}/watchers",
        extract="watchers",
        doc="List the users watching an issue.",
    )
    add_watcher = Endpoint(
        "POST",
        "issue/{issue_key}/watchers",
        body="username",
        doc="Add a user as a watcher; Jira expects the bare JSON string.",
    )
    update_assignee = Endpoint(
        "PUT",
        "issue/{issue_key}/assignee",
        params=("assignee_name",),
        body=lambda a: {"name": a["assignee_name"]},
    )
    update_assignee_with_id = Endpoint(
        "PUT",
        "issue/{issue_key}/assignee",
        params=("user_id",),
        body=lambda a: {"accountId": a["user_id"]},
    )
    issue_notify = Endpoint(
        "POST",
        "issue/{issue_id}/notify",
        body="notification_body",
        doc="Send an email notification about an issue.",
    )
    get_issue_create_metadata = Endpoint(
        "GET",
        "issue/createmeta",
        query=("projectIds", "projectKeys", "issuetypeIds", "issuetypeNames", "expand"),
        doc="Get the metadata needed to create issues.",
    )
    list_transitions = Endpoint(
        "GET",
        "issue/{issue_id}/transitions",
        fixed_query={"expand": "transitions.fields"},
    )
    transition_issue = Endpoint(
        "POST",
        "issue/{issue_id}/transitions",
        body="issue_transition",
        doc="Move an issue through a workflow transition.",
    )
    search_jira = Endpoint(
        "POST",
        "search",
        params=("jql", "start_at", "max_results", "fields", "expand"),
        defaults={
            **_PAGE_DEFAULTS,
            "fields": DEFAULT_SEARCH_FIELDS,
            "expand": DEFAULT_SEARCH_EXPAND,
        },
        body=lambda a: {
            "jql": a["jql"],
            "startAt": a["start_at"],
            "maxResults": a["max_results"],
            "fields": list(a["fields"] or DEFAULT_SEARCH_FIELDS),
            "expand": list(a["expand"] or DEFAULT_SEARCH_EXPAND),
        },
        doc="Search issues with JQL.",
    )

    async def get_users_issues(self, username: str, open_only: bool = False) -> Any:
        """Get issues assigned to a user.

        Args:
            username: Username of the assignee
            open_only: Only return issues that are Open, In Progress or Reopened

        Returns:
            Search results
        """
        assignee = username.replace("@", "\\u0040")
        jql = f"assignee = {assignee}"
        if open_only:
            jql += " AND status in (Open, 'In Progress', Reopened)"
        return await self.search_jira(jql)

    # ================== Comment Operations ==================

    add_comment = Endpoint(
        "POST",
        "issue/{issue_id}/comment",
        params=("comment",),
        body=lambda a: {"body": a["comment"]},
    )
    add_comment_advanced = Endpoint(
        "POST",
        "issue/{issue_id}/comment",
        body="comment",
        doc="Add a comment given as a full comment object (e.g. with visibility).",
    )
    update_comment = Endpoint(
        "PUT",
        "issue/{issue_id}/comment/{comment_id}",
        params=("comment", "options"),
        defaults={"options": None},
        body=lambda a: {"body": a["comment"], **(a["options"] or {})},
    )
    get_comments = Endpoint("GET", "issue/{issue_id}/comment")
    get_comment = Endpoint("GET", "issue/{issue_id}/comment/{comment_id}")
    delete_comment = Endpoint("DELETE", "issue/{issue_id}/comment/{comment_id}")

    # ================== Worklog Operations ==================

    async def add_worklog(
        self,
        issue_id: str,
        worklog: Mapping[str, Any],
        new_estimate: Optional[str] = None,
        **options: Any,
    ) -> Any:
        """Add a worklog to an issue.

        Args:
            issue_id: Issue to log work on
            worklog: Worklog object as the REST API specifies it
            new_estimate: Remaining estimate to set, e.g. "1d"; the estimate
                is adjusted automatically when omitted
            **options: Extra query parameters, overriding the above

        Returns:
            Created worklog
        """
        query: dict[str, Any] = {"adjustEstimate": "new" if new_estimate else "auto"}
        if new_estimate:
            query["newEstimate"] = new_estimate
        query.update(options)

        url = self.urls.make_uri(f"issue/{issue_id}/worklog", query=query)
        return await self.dispatcher.do_request(RequestOptions(url, "POST", body=worklog))

    updated_worklogs = Endpoint(
        "GET",
        "worklog/updated",
        params=("since",),
        query=("since", "expand"),
        doc="Get ids of worklogs modified since a UNIX timestamp in milliseconds.",
    )
    get_worklogs = Endpoint(
        "POST",
        "worklog/list",
        params=("worklog_ids",),
        query=("expand",),
        body=lambda a: {"ids": a["worklog_ids"]},
    )
    get_issue_worklogs = Endpoint(
        "GET",
        "issue/{issue_id}/worklog",
        query=_PAGE,
        defaults={"start_at": 0, "max_results": 1000},
    )
    delete_worklog = Endpoint("DELETE", "issue/{issue_id}/worklog/{worklog_id}")

    # ================== Issue Link Operations ==================

    issue_link = Endpoint("POST", "issueLink", body="link", doc="Link two issues.")
    delete_issue_link = Endpoint("DELETE", "issueLink/{link_id}")
    list_issue_link_types = Endpoint("GET", "issueLinkType")
    get_remote_links = Endpoint("GET", "issue/{issue_number}/remotelink")
    create_remote_link = Endpoint(
        "POST",
        "issue/{issue_number}/remotelink",
        body="remote_link",
        doc="Create a remote (external URL) link for an issue.",
    )

    # ================== Project Operations ==================

    list_projects = Endpoint("GET", "project")
    get_project = Endpoint("GET", "project/{project}")
    create_project = Endpoint("POST", "project", body="project")
    list_components = Endpoint("GET", "project/{project}/components")
    add_new_component = Endpoint("POST", "component", body="component")
    update_component = Endpoint("PUT", "component/{component_id}", body="component")
    delete_component = Endpoint(
        "DELETE",
        "component/{component_id}",
        query=("moveIssuesTo",),
        doc="Delete a component, optionally moving its issues to another one.",
    )
    related_issue_counts = Endpoint("GET", "component/{component_id}/relatedIssueCounts")

    # ================== Version Operations ==================

    get_versions = Endpoint("GET", "project/{project}/versions")
    get_version = Endpoint("GET", "version/{version_id}")
    create_version = Endpoint("POST", "version", body="version")

    async def update_version(self, version: Mapping[str, Any]) -> Any:
        """Update a version; the version object must carry its ``id``."""
        url = self.urls.make_uri(f"version/{version['id']}")
        return await self.dispatcher.do_request(RequestOptions(url, "PUT", body=version))

    delete_version = Endpoint(
        "DELETE",
        "version/{version_id}",
        query=("moveFixIssuesTo", "moveAffectedIssuesTo"),
        doc="Delete a version, optionally moving fix/affected issues to other versions.",
    )
    move_version = Endpoint("POST", "version/{version_id}/move", body="position")
    get_unresolved_issue_count = Endpoint(
        "GET",
        "version/{version_id}/unresolvedIssueCount",
        extract="issuesUnresolvedCount",
    )

    # ================== Field Operations ==================

    list_fields = Endpoint("GET", "field")
    create_custom_field = Endpoint("POST", "field", body="field")
    create_field_option = Endpoint("POST", "field/{field_key}/option", body="option")
    list_field_options = Endpoint("GET", "field/{field_key}/option")
    upsert_field_option = Endpoint("PUT", "field/{field_key}/option/{option_id}", body="option")
    get_field_option = Endpoint("GET", "field/{field_key}/option/{option_id}")
    delete_field_option = Endpoint("DELETE", "field/{field_key}/option/{option_id}")

    # ================== User Operations ==================

    get_current_user = Endpoint("GET", "myself", doc="Get the authenticated user.")
    get_user = Endpoint(
        "GET",
        "user",
        params=("account_id",),
        query=("accountId", "expand"),
    )
    get_users = Endpoint(
        "GET",
        "users",
        query=_PAGE,
        defaults={"start_at": 0, "max_results": 100},
        doc="List all (active and inactive) users.",
    )
    create_user = Endpoint("POST", "user", body="user")
    search_users = Endpoint(
        "GET",
        "user/search",
        query=("username", "query", "startAt", "maxResults", "includeActive", "includeInactive"),
        defaults={**_PAGE_DEFAULTS, "include_active": True, "include_inactive": False},
    )

    async def get_users_in_group(
        self,
        groupname: str,
        start_at: int = 0,
        max_results: int = 50,
    ) -> Any:
        """Get a group with a slice of its users expanded."""
        url = self.urls.make_uri(
            "group",
            query={"groupname": groupname, "expand": f"users[{start_at}:{max_results}]"},
        )
        return await self.dispatcher.do_request(RequestOptions(url))

    # ================== Metadata Operations ==================

    list_priorities = Endpoint("GET", "priority")
    list_issue_types = Endpoint("GET", "issuetype")
    list_status = Endpoint("GET", "status")
    get_server_info = Endpoint("GET", "serverInfo")
    get_filter = Endpoint("GET", "filter/{filter_id}")
    generic_get = Endpoint(
        "GET",
        "{endpoint}",
        encode=False,
        doc="GET any classic API path, e.g. 'field' or 'issue/PROJ-1?fields=summary'.",
    )

    # ================== Attachment and Avatar Operations ==================

    async def download_attachment(self, attachment: Mapping[str, Any]) -> Download:
        """Download attachment content.

        Args:
            attachment: Attachment object with ``id`` and ``filename``

        Returns:
            Raw bytes paired with the declared MIME type
        """
        url = self.urls.make_uri(
            f"attachment/{attachment['id']}/{attachment['filename']}",
            intermediate_path="secure",
        )
        return await self.dispatcher.do_request(RequestOptions(url), binary=True)

    download_avatar = Endpoint(
        "GET",
        "viewavatar",
        params=("avatar_type", "avatar_id"),
        query=("avatarType", "avatarId"),
        intermediate_path="secure",
        binary=True,
        doc="Download a system or project avatar.",
    )
    download_user_avatar = Endpoint(
        "GET",
        "useravatar",
        params=("owner_id", "avatar_id"),
        query=("ownerId", "avatarId"),
        intermediate_path="secure",
        binary=True,
        doc="Download a user avatar.",
    )

    async def add_attachment_on_issue(
        self,
        issue_id: str,
        file: Union[str, Path, BinaryIO],
        filename: Optional[str] = None,
    ) -> Any:
        """Add an attachment to an issue.

        Args:
            issue_id: Issue key or id
            file: Path to a file, or an open binary file object
            filename: Name to upload under; defaults to the file's name

        Returns:
            Created attachment data
        """
        url = self.urls.make_uri(f"issue/{issue_id}/attachments")
        headers = {"X-Atlassian-Token": "no-check"}

        if isinstance(file, (str, Path)):
            path = Path(file)
            if not path.exists():
                raise FileNotFoundError(f"File not found: {path}")
            with open(path, "rb") as f:
                files = {"file": (filename or path.name, f, "application/octet-stream")}
                return await self.dispatcher.do_request(
                    RequestOptions(url, "POST", headers=headers, files=files)
                )

        name = filename or Path(getattr(file, "name", "attachment")).name
        files = {"file": (name, file, "application/octet-stream")}
        return await self.dispatcher.do_request(
            RequestOptions(url, "POST", headers=headers, files=files)
        )

    # ================== Webhook Operations ==================

    register_webhook = Endpoint("POST", "webhook", family=WEBHOOK, body="webhook")
    list_webhooks = Endpoint("GET", "webhook", family=WEBHOOK)
    get_webhook = Endpoint("GET", "webhook/{webhook_id}", family=WEBHOOK)
    delete_webhook = Endpoint("DELETE", "webhook/{webhook_id}", family=WEBHOOK)

    # ================== Greenhopper Operations ==================

    async def find_rapid_view(self, project_name: str) -> Optional[dict[str, Any]]:
        """Find the rapid view whose name matches a project name.

        Returns:
            The rapid view, or None if no view has that name
        """
        url = self.urls.make_sprint_query_uri("rapidviews/list")
        response = await self.dispatcher.do_request(RequestOptions(url))
        views = response.get("views", []) if isinstance(response, dict) else []
        for view in views:
            if view.get("name", "").lower() == project_name.lower():
                return view
        return None

    async def get_last_sprint_for_rapid_view(self, rapid_view_id: Union[int, str]) -> Optional[dict[str, Any]]:
        """Get the most recent sprint of a rapid view, or None if it has none."""
        response = await self.list_sprints(rapid_view_id)
        sprints = response.get("sprints", []) if isinstance(response, dict) else []
        return sprints[-1] if sprints else None

    list_sprints = Endpoint("GET", "sprintquery/{rapid_view_id}", family=GREENHOPPER)
    get_sprint_issues = Endpoint(
        "GET",
        "rapid/charts/sprintreport",
        family=GREENHOPPER,
        params=("rapid_view_id", "sprint_id"),
        query=("rapidViewId", "sprintId"),
        doc="Get the sprint report (completed and incomplete issues) of a sprint.",
    )
    get_backlog_for_rapid_view = Endpoint(
        "GET",
        "xboard/plan/backlog/data",
        family=GREENHOPPER,
        params=("rapid_view_id",),
        query=("rapidViewId",),
    )

    # ================== Agile Board Operations ==================

    get_issue = Endpoint(
        "GET",
        "issue/{issue_id_or_key}",
        family=AGILE,
        query=("fields", "expand"),
        doc="Get an issue with its Agile fields.",
    )
    move_to_backlog = Endpoint(
        "POST",
        "backlog/issue",
        family=AGILE,
        params=("issues",),
        body=lambda a: {"issues": a["issues"]},
    )
    rank_issues = Endpoint("PUT", "issue/rank", family=AGILE, body="data")
    get_issue_estimation_for_board = Endpoint(
        "GET",
        "issue/{issue_id_or_key}/estimation",
        family=AGILE,
        params=("board_id",),
        query=("boardId",),
    )
    estimate_issue_for_board = Endpoint(
        "PUT",
        "issue/{issue_id_or_key}/estimation",
        family=AGILE,
        params=("board_id", "data"),
        query=("boardId",),
        body="data",
    )
    get_all_boards = Endpoint(
        "GET",
        "board",
        family=AGILE,
        query=("startAt", "maxResults", "type", "name", "projectKeyOrId"),
        defaults=_PAGE_DEFAULTS,
    )
    create_board = Endpoint("POST", "board", family=AGILE, body="board_body")
    get_board = Endpoint("GET", "board/{board_id}", family=AGILE)
    delete_board = Endpoint("DELETE", "board/{board_id}", family=AGILE)
    get_configuration = Endpoint("GET", "board/{board_id}/configuration", family=AGILE)
    get_issues_for_backlog = Endpoint(
        "GET",
        "board/{board_id}/backlog",
        family=AGILE,
        query=_BOARD_ISSUES,
        defaults=_BOARD_ISSUES_DEFAULTS,
    )
    get_issues_for_board = Endpoint(
        "GET",
        "board/{board_id}/issue",
        family=AGILE,
        query=_BOARD_ISSUES,
        defaults=_BOARD_ISSUES_DEFAULTS,
    )
    get_epics = Endpoint(
        "GET",
        "board/{board_id}/epic",
        family=AGILE,
        query=("startAt", "maxResults", "done"),
        defaults=_PAGE_DEFAULTS,
    )
    get_board_issues_for_epic = Endpoint(
        "GET",
        "board/{board_id}/epic/{epic_id}/issue",
        family=AGILE,
        query=_BOARD_ISSUES,
        defaults=_BOARD_ISSUES_DEFAULTS,
    )
    get_projects = Endpoint(
        "GET",
        "board/{board_id}/project",
        family=AGILE,
        query=_PAGE,
        defaults=_PAGE_DEFAULTS,
    )
    get_projects_full = Endpoint("GET", "board/{board_id}/project/full", family=AGILE)
    get_board_properties_keys = Endpoint("GET", "board/{board_id}/properties", family=AGILE)
    get_board_property = Endpoint("GET", "board/{board_id}/properties/{property_key}", family=AGILE)
    set_board_property = Endpoint(
        "PUT",
        "board/{board_id}/properties/{property_key}",
        family=AGILE,
        body="data",
    )
    delete_board_property = Endpoint(
        "DELETE",
        "board/{board_id}/properties/{property_key}",
        family=AGILE,
    )
    get_all_sprints = Endpoint(
        "GET",
        "board/{board_id}/sprint",
        family=AGILE,
        query=("startAt", "maxResults", "state"),
        defaults=_PAGE_DEFAULTS,
    )
    get_board_issues_for_sprint = Endpoint(
        "GET",
        "board/{board_id}/sprint/{sprint_id}/issue",
        family=AGILE,
        query=_BOARD_ISSUES,
        defaults=_BOARD_ISSUES_DEFAULTS,
    )
    get_all_versions = Endpoint(
        "GET",
        "board/{board_id}/version",
        family=AGILE,
        query=("startAt", "maxResults", "released"),
        defaults=_PAGE_DEFAULTS,
    )

    # ================== Agile Sprint Operations ==================

    create_sprint = Endpoint("POST", "sprint", family=AGILE, body="sprint")
    get_sprint = Endpoint("GET", "sprint/{sprint_id}", family=AGILE)
    update_sprint = Endpoint(
        "POST",
        "sprint/{sprint_id}",
        family=AGILE,
        body="data",
        doc="Partially update a sprint (name, state, startDate, endDate, goal).",
    )
    add_issue_to_sprint = Endpoint(
        "POST",
        "sprint/{sprint_id}/issue",
        family=AGILE,
        params=("issue_id", "sprint_id"),
        body=lambda a: {"issues": [a["issue_id"]]},
    )

    # ================== Agile Epic Operations ==================

    get_epic = Endpoint("GET", "epic/{epic_id_or_key}", family=AGILE)
    partially_update_epic = Endpoint("POST", "epic/{epic_id_or_key}", family=AGILE, body="data")
    get_issues_for_epic = Endpoint(
        "GET",
        "epic/{epic_id}/issue",
        family=AGILE,
        query=_BOARD_ISSUES,
        defaults=_BOARD_ISSUES_DEFAULTS,
    )
    move_issues_to_epic = Endpoint(
        "POST",
        "epic/{epic_id_or_key}/issue",
        family=AGILE,
        params=("issues",),
        body=lambda a: {"issues": a["issues"]},
    )
    rank_epics = Endpoint("PUT", "epic/{epic_id_or_key}/rank", family=AGILE, body="data")

    # ================== Dev-status Operations ==================

    get_dev_status_summary = Endpoint(
        "GET",
        "summary",
        family=DEV_STATUS,
        intermediate_path="rest/dev-status/latest/issue",
        params=("issue_id",),
        query=("issueId",),
        doc="Summary of commits, branches and pull requests linked to an issue.",
    )
    get_dev_status_detail = Endpoint(
        "GET",
        family=DEV_STATUS,
        params=("issue_id", "application_type", "data_type"),
        query=("issueId", "applicationType", "dataType"),
        doc="Development details of an issue for one application and data type.",
    )
