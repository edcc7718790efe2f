#!/usr/bin/python
"""
NGC client wrapper for Ansible modules.

Resolves credentials once and hands out a single NVCF API client.
"""

import threading
import typing as t

import requests  # type: ignore

from .nvcf_api import NVCFAPI
from .nvcf_auth import NGCAuth
from .nvcf_common import NVCFModuleBase


class NGCClient(NVCFModuleBase):
    """NGC connection shared by the resource and info modules."""

    def __init__(self, module: t.Any, session: requests.Session | None = None) -> None:
        super().__init__(module)
        self.auth = NGCAuth(module)
        self.auth.validate()

        self._session = session
        self._nvcf_client: NVCFAPI | None = None
        self._lock = threading.Lock()

    @property
    def nvcf_client(self) -> NVCFAPI:
        """Get the NVCF API client, built on first use."""
        if self._nvcf_client is None:
            with self._lock:
                # first caller wins, later callers reuse its client
                if self._nvcf_client is None:
                    self._nvcf_client = NVCFAPI(
                        self.module,
                        base_url=self.auth.base_url(),
                        api_key=self.auth.api_key or "",
                        session=self._session,
                    )
        return self._nvcf_client
