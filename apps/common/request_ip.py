"""
Secure client IP detection for webhook endpoints

Respects the trusted proxy configuration so provider deliveries cannot spoof
their origin through forwarding headers and bypass rate limiting.

Usage:
    from apps.common.request_ip import get_safe_client_ip

    def my_view(request):
        client_ip = get_safe_client_ip(request)
"""

import ipaddress

from django.conf import settings
from django.http import HttpRequest


def _is_trusted_proxy(ip: str, trusted_proxies: list[str]) -> bool:
    """Check if an IP address is in the trusted proxy list (supports CIDR)."""
    if not trusted_proxies:
        return False

    try:
        ip_addr = ipaddress.ip_address(ip)
    except ValueError:
        return False

    for proxy in trusted_proxies:
        try:
            if "/" in proxy:
                if ip_addr in ipaddress.ip_network(proxy, strict=False):
                    return True
            elif ip_addr == ipaddress.ip_address(proxy):
                return True
        except ValueError:
            continue
    return False


def _is_valid_ip(ip: str) -> bool:
    """Check if a string is a valid IP address."""
    try:
        ipaddress.ip_address(ip)
        return True
    except ValueError:
        return False


def get_safe_client_ip(request: HttpRequest) -> str:
    """
    Get the real client IP address, honoring forwarding headers only from trusted proxies.

    Configuration is done via IPWARE_TRUSTED_PROXY_LIST in Django settings:
    - Dev/Test: [] (use REMOTE_ADDR only)
    - Prod: ['10.0.0.0/8'] (only trust the load balancer CIDRs)
    """
    trusted_proxies = getattr(settings, "IPWARE_TRUSTED_PROXY_LIST", [])
    remote_addr = request.META.get("REMOTE_ADDR", "127.0.0.1") or "127.0.0.1"

    if not trusted_proxies or not _is_trusted_proxy(remote_addr, trusted_proxies):
        return remote_addr

    for header in ("HTTP_X_FORWARDED_FOR", "HTTP_X_REAL_IP"):
        value = request.META.get(header)
        if value:
            # First IP in the chain is the original client
            client_ip = value.split(",")[0].strip()
            if client_ip and _is_valid_ip(client_ip):
                return client_ip

    return remote_addr
