"""Exceptions raised by the reconciliation pipelines."""
from __future__ import annotations


class ReconcilerError(Exception):
    """Base class for reconciler failures."""


class SessionUnavailableError(ReconcilerError):
    """No CSRF token could be obtained; the run cannot start its scan."""


class ProposalCommitError(ReconcilerError):
    """The batch write of update proposals failed; nothing was written."""
