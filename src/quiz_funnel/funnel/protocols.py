"""
Module: funnel.protocols

Purpose:
    Structural interfaces of the funnel's external collaborators. The real
    implementations are ``quiz_funnel.api.client.ApiClient`` (catalog and
    resolver) and ``quiz_funnel.progress.store.ProgressStore`` (progress);
    tests inject fakes.
"""

from __future__ import annotations

from typing import List, Optional, Protocol

from quiz_funnel.core.models import Bundle, FeatureFlags, IncompleteRecord, Quiz, Subject


class CatalogProvider(Protocol):
    def get_subjects(self) -> List[Subject]: ...

    def get_feature_flags(self) -> FeatureFlags: ...


class BundleResolver(Protocol):
    def resolve_bundles(
        self,
        grade: str,
        medium: str,
        subject: str,
        paper_type: Optional[str],
        term: Optional[str] = None,
    ) -> List[Bundle]: ...

    def search(self, query: str) -> List[Quiz]: ...


class ProgressTracker(Protocol):
    def list_incomplete(self) -> List[IncompleteRecord]: ...
