# jsonui_testrunner/references.py
"""
@file references.py
@brief Resolves file references in flow tests to screen-test documents and cases.
"""

from __future__ import annotations

import os
from typing import Dict, List, Optional, Sequence

from .exceptions import (BasePathUnset, CaseNotFound, ReferenceNotFound,
                         WrongDocumentKind)
from .loader import TEST_FILE_SUFFIX, TestLoader
from .models import (FLOW, SCREEN, LoadedScreen, LoadedTest,
                     ResolutionContext, TestCase)

CANDIDATE_SUFFIXES = (TEST_FILE_SUFFIX, ".json", "")


class ReferenceResolver:
    """
    Resolves relative file references against an explicit ResolutionContext.

    Loaded documents are cached by absolute path for the lifetime of the
    resolver, so a flow that references the same file repeatedly parses it once.
    """

    def __init__(self, loader: Optional[TestLoader] = None):
        self.loader = loader or TestLoader()
        self._cache: Dict[str, LoadedTest] = {}

    def clear_cache(self) -> None:
        self._cache.clear()

    def candidates(self, ref: str, context: ResolutionContext) -> List[str]:
        if not context.base_dir:
            raise BasePathUnset(ref)
        return [os.path.join(context.base_dir, ref + suffix) for suffix in CANDIDATE_SUFFIXES]

    def resolve_file(self, ref: str, context: ResolutionContext) -> str:
        """
        Try ref + ".test.json", ref + ".json", then ref itself.

        @return Absolute path of the first candidate that exists
        @throws BasePathUnset if the context has no base directory
        @throws ReferenceNotFound if no candidate exists
        """
        tried = self.candidates(ref, context)
        for path in tried:
            if os.path.isfile(path):
                return os.path.abspath(path)
        raise ReferenceNotFound(ref, candidates=tried)

    def load_reference(self, ref: str, context: ResolutionContext) -> LoadedTest:
        path = self.resolve_file(ref, context)
        loaded = self._cache.get(path)
        if loaded is None:
            loaded = self.loader.load(path)
            self._cache[path] = loaded
        return loaded

    def resolve_cases(
        self,
        file_ref: str,
        context: ResolutionContext,
        case_name: Optional[str] = None,
        case_names: Optional[Sequence[str]] = None,
    ) -> List[TestCase]:
        """
        Resolve a file reference to an ordered list of cases.

        case_name wins over case_names; with neither, all cases are returned
        in declared order.
        """
        loaded = self.load_reference(file_ref, context)
        if not isinstance(loaded, LoadedScreen):
            raise WrongDocumentKind(file_ref, expected=SCREEN, actual=FLOW)

        test = loaded.test
        if case_name is not None:
            case = test.get_case(case_name)
            if case is None:
                raise CaseNotFound(case_name, file_ref, available=test.case_names)
            return [case]

        if case_names:
            selected: List[TestCase] = []
            for name in case_names:
                case = test.get_case(name)
                if case is None:
                    raise CaseNotFound(name, file_ref, available=test.case_names)
                selected.append(case)
            return selected

        return list(test.cases)
