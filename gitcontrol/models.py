from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Rule(Enum):
    CODE_INJECTION = "actions/code-injection/medium"
    UNPINNED_TAG = "actions/unpinned-tag"


class Status(Enum):
    FIXED = "fixed"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass
class Alert:
    rule: str
    file: str
    message: str = ""

    @classmethod
    def from_dict(cls, data) -> "Alert":
        if not isinstance(data, dict):
            return cls(rule="", file="", message="")
        return cls(
            rule=str(data.get('rule') or ''),
            file=str(data.get('file') or ''),
            message=str(data.get('message') or '')
        )

    def to_dict(self):
        return {
            'rule': self.rule,
            'file': self.file,
            'message': self.message,
        }


@dataclass
class AlertResult:
    alert: Alert
    status: Status
    fixes: int = 0
    detail: str = ""

    def to_dict(self):
        return {
            'alert': self.alert.to_dict(),
            'status': self.status.value,
            'fixes': self.fixes,
            'detail': self.detail,
        }


@dataclass
class AutofixReport:
    results: List[AlertResult] = field(default_factory=list)
    modified_files: List[str] = field(default_factory=list)

    @property
    def total_fixes(self) -> int:
        return sum(r.fixes for r in self.results)

    @property
    def has_errors(self) -> bool:
        return any(r.status == Status.ERROR for r in self.results)

    def add(self, result: AlertResult):
        self.results.append(result)
        if result.fixes and result.alert.file not in self.modified_files:
            self.modified_files.append(result.alert.file)

    def to_dict(self):
        status_counts = Counter(r.status for r in self.results)

        return {
            'summary': {
                'total_alerts': len(self.results),
                'total_fixes': self.total_fixes,
                'by_status': {
                    'fixed': status_counts.get(Status.FIXED, 0),
                    'skipped': status_counts.get(Status.SKIPPED, 0),
                    'error': status_counts.get(Status.ERROR, 0),
                },
            },
            'modified_files': list(self.modified_files),
            'results': [r.to_dict() for r in self.results],
        }


@dataclass
class PullRequestSpec:
    title: str
    head: str
    base: str = "main"
    body: str = ""
    label: Optional[str] = None
    issue: Optional[str] = None
    draft: bool = False

    def full_body(self) -> str:
        body = self.body.rstrip("\n")
        if self.issue:
            closing = f"Fixes #{self.issue}"
            body = f"{body}\n\n{closing}" if body else closing
        return body

    def gh_args(self) -> List[str]:
        """Arguments for `gh` that create this pull request."""
        args = ["pr", "create",
                "--title", self.title,
                "--base", self.base,
                "--head", self.head,
                "--body", self.full_body()]
        if self.draft:
            args.append("--draft")
        return args


@dataclass
class LicenseInfo:
    spdx_id: str
    name: str
    source: str
    path: str
    category: str

    def to_dict(self):
        return {
            'spdx_id': self.spdx_id,
            'name': self.name,
            'source': self.source,
            'path': self.path,
            'category': self.category,
        }
