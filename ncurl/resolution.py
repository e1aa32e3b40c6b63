"""
Fills in credential and proxy values the caller left unset.

An explicit value on the descriptor always wins. Otherwise the environment is
consulted, in a fixed order. These functions only read `environ`; pass a
snapshot (any mapping) to make them independent of the process environment.
"""

from dataclasses import dataclass
import logging
import os
from typing import Mapping, Optional, Sequence

from . import settings
from .model import RequestDescriptor


logger = logging.getLogger(__name__)


def _first_set(names: Sequence[str], environ: Mapping[str, str]) -> Optional[str]:
    for name in names:
        value = environ.get(name)
        if value:
            return value
    return None


def resolve_credential(value: Optional[str], env_var: str,
                       environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    if value is not None:
        return value
    return _first_set((env_var,), os.environ if environ is None else environ)


def resolve_username(descriptor: RequestDescriptor,
                     environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    return resolve_credential(descriptor.username, settings.USERNAME_ENV, environ)


def resolve_password(descriptor: RequestDescriptor,
                     environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    return resolve_credential(descriptor.password, settings.PASSWORD_ENV, environ)


def resolve_proxy(value: Optional[str], environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    if value is not None:
        return value
    return _first_set(settings.PROXY_ENV, os.environ if environ is None else environ)


def resolve_no_proxy(value: Optional[str], environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    if value is not None:
        return value
    return _first_set(settings.NO_PROXY_ENV, os.environ if environ is None else environ)


@dataclass(frozen=True)
class ResolvedSettings:
    username: Optional[str]
    password: Optional[str]
    proxy_url: Optional[str]
    no_proxy: Optional[str]


def resolve(descriptor: RequestDescriptor, environ: Optional[Mapping[str, str]] = None) -> ResolvedSettings:
    """
    Resolve every environment-backed field of `descriptor` against one snapshot of the environment.
    """
    snapshot = dict(os.environ if environ is None else environ)
    resolved = ResolvedSettings(username=resolve_username(descriptor, snapshot),
                                password=resolve_password(descriptor, snapshot),
                                proxy_url=resolve_proxy(descriptor.proxy_url, snapshot),
                                no_proxy=resolve_no_proxy(descriptor.no_proxy_list, snapshot))
    if resolved.proxy_url is not None and descriptor.proxy_url is None:
        logger.info('Using proxy {} from the environment'.format(resolved.proxy_url))
    return resolved
