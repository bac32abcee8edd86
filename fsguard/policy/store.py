"""
Policy Store for FsGuard.

Owns the single current Policy snapshot and the subscriber lists. All other
components receive the store (or a snapshot) by injection; nothing reads
policy from module globals.

Guarantees:
- Snapshots are immutable and swapped in one assignment
- Updates are all-or-nothing
- Read failures never raise out of the store
- Every successful reload/update notifies each live subscriber once
"""

import threading
from typing import Any, Callable, Mapping, Optional

from rich.console import Console

from fsguard.errors import (
    ConfigReadError,
    ConfigWriteError,
    FsGuardError,
    InvalidSettingsError,
    SubscriberError,
)
from fsguard.events import Emitter, Subscription
from fsguard.policy.rules import DEFAULT_POLICY, Policy, flatten_settings, merge_settings
from fsguard.policy.sources import ConfigSource, MappingConfigSource
from fsguard.policy.validation import ValidationResult, validate_policy

console = Console(stderr=True)

# Partial updates: nested by section or flat dotted keys
PartialPolicy = Mapping[str, Any]


class PolicyStore:
    """
    Typed, validated configuration with change propagation.

    Args:
        source: Where settings are read from and persisted to
        verbose: Whether to log fallbacks and rejections to stderr
    """

    def __init__(self, source: Optional[ConfigSource] = None, verbose: bool = True):
        self.source = source if source is not None else MappingConfigSource()
        self.verbose = verbose
        self._lock = threading.RLock()
        self._errors: Emitter[FsGuardError] = Emitter()
        self._changes: Emitter[Policy] = Emitter(
            on_error=lambda e: self._report(SubscriberError(e))
        )
        self._policy: Policy = DEFAULT_POLICY
        self._disposed = False
        self.last_error: Optional[FsGuardError] = None

        loaded = self._load()
        if loaded is not None:
            self._policy = loaded
        elif verbose:
            console.print("[dim]Using default settings[/dim]")

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    def get_settings(self) -> Policy:
        """
        Current snapshot.

        The snapshot is frozen, so handing it out cannot affect the store.
        Use ``Policy.with_changes()`` to derive a modified copy, or
        ``Policy.to_dict()`` for a plain editable one.
        """
        return self._policy

    @property
    def policy(self) -> Policy:
        return self._policy

    def validate_settings(self, candidate: Policy) -> ValidationResult:
        """Validate a candidate without touching the store."""
        return validate_policy(candidate)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def reload_settings(self) -> Policy:
        """
        Re-read the source, merge with defaults and swap if valid.

        Never raises. On failure the last good snapshot stays in force and
        the failure goes to the error channel.

        Returns:
            The snapshot in force after the call
        """
        with self._lock:
            loaded = self._load()
            if loaded is None:
                return self._policy
            self._policy = loaded
            current = loaded

        self._changes.fire(current)
        return current

    def update_settings(self, partial: PartialPolicy) -> Policy:
        """
        Merge a partial update onto the current snapshot.

        Args:
            partial: Nested-by-section mapping or flat dotted keys

        Returns:
            The new snapshot

        Raises:
            InvalidSettingsError: The merged candidate failed validation;
                the stored snapshot is unchanged
        """
        with self._lock:
            candidate = merge_settings(self._policy, partial)
            result = validate_policy(candidate)
            if not result.valid:
                if self.verbose:
                    console.print(
                        f"[yellow]Rejected settings update: {', '.join(result.errors)}[/yellow]"
                    )
                raise InvalidSettingsError(result.errors, result.warnings)

            try:
                flat = candidate.to_flat()
                self.source.write({key: flat[key] for key in flatten_settings(partial)})
            except ConfigWriteError as e:
                self._report(e)
            except Exception as e:
                self._report(ConfigWriteError(repr(self.source), e))

            self._policy = candidate

        self._changes.fire(candidate)
        return candidate

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def on_did_change(self, subscriber: Callable[[Policy], None]) -> Subscription:
        """Register for the new Policy after every successful reload/update."""
        return self._changes.subscribe(subscriber)

    def on_did_error(self, subscriber: Callable[[FsGuardError], None]) -> Subscription:
        """Register for read/write/subscriber failures."""
        return self._errors.subscribe(subscriber)

    def dispose(self) -> None:
        """Release every subscription."""
        self._disposed = True
        self._changes.dispose()
        self._errors.dispose()

    @property
    def disposed(self) -> bool:
        return self._disposed

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load(self) -> Optional[Policy]:
        """Read, merge and validate. None means keep the current snapshot."""
        try:
            values = self.source.read()
        except ConfigReadError as e:
            self._report(e)
            return None
        except Exception as e:
            self._report(ConfigReadError(repr(self.source), e))
            return None

        try:
            candidate = merge_settings(DEFAULT_POLICY, values)
        except InvalidSettingsError as e:
            self._report(e)
            return None

        result = validate_policy(candidate)
        if not result.valid:
            self._report(InvalidSettingsError(result.errors, result.warnings))
            return None

        if self.verbose:
            for warning in result.warnings:
                console.print(f"[yellow]⚠ {warning}[/yellow]")
        return candidate

    def _report(self, error: FsGuardError) -> None:
        self.last_error = error
        if self.verbose:
            console.print(f"[red]{error}[/red]")
        self._errors.fire(error)
