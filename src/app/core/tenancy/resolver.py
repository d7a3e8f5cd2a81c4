"""Map inbound request context to a tenant slug.

All functions here are pure: they look only at the host, path and cookies
they are given and never touch the registry.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum

from app.config import Settings
from app.core.constants import DEFAULT_RESERVED_SUBDOMAINS


class TenantSource(str, Enum):
    """Where a resolved tenant slug came from."""

    SUBDOMAIN = "subdomain"
    PATH = "path"
    COOKIE = "cookie"


@dataclass(frozen=True)
class ResolvedTenant:
    """A tenant slug and the strategy that produced it."""

    slug: str
    source: TenantSource


class TenantResolver:
    """Resolve tenant slugs from host names, paths and cookies.

    Strategies are tried in order: subdomain, path, cookie. A request that
    matches none of them has no tenant context.
    """

    def __init__(
        self,
        production_domain: str,
        staging_domain: str | None = None,
        path_prefix: str = "/tenant",
        reserved_subdomains: Iterable[str] = DEFAULT_RESERVED_SUBDOMAINS.split(","),
        cookie_name: str = "tenant-slug",
    ) -> None:
        # Most specific first: the staging domain lives under production
        self.domains = tuple(
            sorted(
                {
                    domain.lower().strip(".")
                    for domain in (production_domain, staging_domain)
                    if domain
                },
                key=len,
                reverse=True,
            )
        )
        self.path_prefix = "/" + path_prefix.strip("/")
        self.reserved_subdomains = frozenset(s.lower() for s in reserved_subdomains)
        self.cookie_name = cookie_name

    @classmethod
    def from_settings(cls, settings: Settings) -> "TenantResolver":
        """Build a resolver from platform settings."""
        return cls(
            production_domain=settings.production_domain,
            staging_domain=settings.staging_domain,
            path_prefix=settings.tenant_path_prefix,
            reserved_subdomains=settings.reserved_subdomain_set,
            cookie_name=settings.tenant_cookie_name,
        )

    def from_subdomain(self, host: str | None) -> str | None:
        """Extract the tenant slug from a host name.

        Args:
            host: Host header value, optionally with a port

        Returns:
            The leftmost label when the host is under a routing domain and
            the label is not reserved, otherwise None

        Examples:
            >>> resolver = TenantResolver("onwindos.com")
            >>> resolver.from_subdomain("tenant1.onwindos.com:443")
            'tenant1'
            >>> resolver.from_subdomain("www.onwindos.com") is None
            True
            >>> staging = TenantResolver("onwindos.com", "staging.onwindos.com")
            >>> staging.from_subdomain("staging.onwindos.com") is None
            True
        """
        if not host:
            return None

        hostname = host.strip().lower().split(":", 1)[0].rstrip(".")
        if hostname in self.domains:
            return None

        for domain in self.domains:
            if hostname.endswith("." + domain):
                label = hostname[: -len(domain) - 1].split(".")[0]
                if not label or label in self.reserved_subdomains:
                    return None
                return label

        return None

    def from_path(self, pathname: str | None) -> str | None:
        """Extract the tenant slug from a path-routed URL.

        Args:
            pathname: Request path

        Returns:
            The first segment after the tenant prefix, or None when the path
            does not start with the prefix

        Examples:
            >>> TenantResolver("onwindos.com").from_path("/tenant/acme/dashboard")
            'acme'
        """
        if not pathname:
            return None

        prefix = self.path_prefix
        if pathname != prefix and not pathname.startswith(prefix + "/"):
            return None

        remainder = pathname[len(prefix) :].lstrip("/")
        segment = remainder.split("/", 1)[0]
        return segment or None

    def from_cookie(self, cookies: Mapping[str, str] | None) -> str | None:
        """Return the slug remembered in the tenant cookie, if any."""
        if not cookies:
            return None
        value = cookies.get(self.cookie_name)
        return value.strip().lower() if value and value.strip() else None

    def resolve(
        self,
        host: str | None,
        pathname: str | None,
        cookies: Mapping[str, str] | None = None,
    ) -> ResolvedTenant | None:
        """Chain the strategies and report the first match.

        Returns:
            ResolvedTenant, or None when the request has no tenant context
        """
        slug = self.from_subdomain(host)
        if slug:
            return ResolvedTenant(slug, TenantSource.SUBDOMAIN)

        slug = self.from_path(pathname)
        if slug:
            return ResolvedTenant(slug, TenantSource.PATH)

        slug = self.from_cookie(cookies)
        if slug:
            return ResolvedTenant(slug, TenantSource.COOKIE)

        return None
