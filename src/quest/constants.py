"""Constants shared by the modules of the quest package."""

__all__ = ("DEFAULT_PORTS", "JSON_CONTENT_TYPE", "METHODS", "SCHEMES")


#: HTTP verbs that we are willing to send. The list is case-sensitive; a
#: method name not in this list is rejected before any network activity.
METHODS: frozenset[str] = frozenset(
    (
        "ACL",
        "BIND",
        "CHECKOUT",
        "CONNECT",
        "COPY",
        "DELETE",
        "GET",
        "HEAD",
        "LINK",
        "LOCK",
        "M-SEARCH",
        "MERGE",
        "MKACTIVITY",
        "MKCALENDAR",
        "MKCOL",
        "MOVE",
        "NOTIFY",
        "OPTIONS",
        "PATCH",
        "POST",
        "PROPFIND",
        "PROPPATCH",
        "PURGE",
        "PUT",
        "QUERY",
        "REBIND",
        "REPORT",
        "SEARCH",
        "SOURCE",
        "SUBSCRIBE",
        "TRACE",
        "UNBIND",
        "UNLINK",
        "UNLOCK",
        "UNSUBSCRIBE",
    )
)

#: Default ports of the URL schemes that we support
DEFAULT_PORTS: dict[str, int] = {"http": 80, "https": 443}

#: URL schemes that we support
SCHEMES = frozenset(DEFAULT_PORTS)

#: Content type used for structured (JSON) request bodies
JSON_CONTENT_TYPE = "application/json"
