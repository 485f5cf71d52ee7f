"""
License detection and auditing across a repository and its submodules.

Detection order for a directory:
1. SPDX-License-Identifier header in the license file
2. Well-known phrases in the first 150 lines of the license file
3. The license GitHub reports for the origin remote (via gh)
"""
import re
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from gitcontrol.git import GitClient, GitHubCLI, command_exists, parse_github_url
from gitcontrol.models import LicenseInfo

NOASSERTION = "NOASSERTION"

LICENSE_FILE_PATTERNS = [
    "LICENSE",
    "LICENSE.txt",
    "LICENSE.md",
    "LICENCE",
    "LICENCE.txt",
    "LICENCE.md",
    "COPYING",
    "COPYING.txt",
    "license",
    "license.txt",
    "license.md",
    "License",
    "License.txt",
    "License.md",
]

SPDX_NAMES = {
    "MIT": "MIT License",
    "Apache-2.0": "Apache License 2.0",
    "GPL-3.0": "GNU General Public License v3.0",
    "GPL-3.0-only": "GNU General Public License v3.0 only",
    "GPL-3.0-or-later": "GNU General Public License v3.0 or later",
    "GPL-2.0": "GNU General Public License v2.0",
    "GPL-2.0-only": "GNU General Public License v2.0 only",
    "LGPL-3.0": "GNU Lesser General Public License v3.0",
    "LGPL-2.1": "GNU Lesser General Public License v2.1",
    "BSD-3-Clause": "BSD 3-Clause License",
    "BSD-2-Clause": "BSD 2-Clause License",
    "ISC": "ISC License",
    "MPL-2.0": "Mozilla Public License 2.0",
    "AGPL-3.0": "GNU Affero General Public License v3.0",
    "Unlicense": "The Unlicense",
    "CC0-1.0": "Creative Commons Zero v1.0 Universal",
    "CC-BY-4.0": "Creative Commons Attribution 4.0",
    "WTFPL": "Do What The F*ck You Want To Public License",
    "Zlib": "zlib License",
    NOASSERTION: "No license detected",
}

LICENSE_CATEGORIES = {
    "MIT": "permissive",
    "Apache-2.0": "permissive",
    "BSD-3-Clause": "permissive",
    "BSD-2-Clause": "permissive",
    "ISC": "permissive",
    "Unlicense": "permissive",
    "CC0-1.0": "permissive",
    "Zlib": "permissive",
    "GPL-3.0": "copyleft-strong",
    "GPL-3.0-only": "copyleft-strong",
    "GPL-3.0-or-later": "copyleft-strong",
    "GPL-2.0": "copyleft-strong",
    "GPL-2.0-only": "copyleft-strong",
    "AGPL-3.0": "copyleft-strong",
    "LGPL-3.0": "copyleft-weak",
    "LGPL-2.1": "copyleft-weak",
    "MPL-2.0": "copyleft-weak",
}

# First match wins; LGPL and AGPL texts also mention the GPL
CONTENT_PATTERNS = [
    ("MIT", r"MIT License|Permission is hereby granted.*MIT"),
    ("Apache-2.0", r"Apache License.*Version 2\.0|Licensed under the Apache License"),
    ("LGPL-3.0", r"GNU LESSER GENERAL PUBLIC LICENSE.*Version 3|LGPLv3"),
    ("LGPL-2.1", r"GNU LESSER GENERAL PUBLIC LICENSE.*Version 2\.1|LGPLv2\.1"),
    ("AGPL-3.0", r"GNU AFFERO GENERAL PUBLIC LICENSE.*Version 3|AGPLv3"),
    ("GPL-3.0", r"GNU GENERAL PUBLIC LICENSE.*Version 3|GPLv3"),
    ("GPL-2.0", r"GNU GENERAL PUBLIC LICENSE.*Version 2|GPLv2"),
    ("BSD-3-Clause", r"BSD 3-Clause|Redistribution and use.*three conditions"),
    ("BSD-2-Clause", r"BSD 2-Clause|Simplified BSD"),
    ("ISC", r"ISC License"),
    ("MPL-2.0", r"Mozilla Public License.*2\.0|MPL-2\.0"),
    ("Unlicense", r"The Unlicense|unlicense\.org"),
    ("CC0-1.0", r"CC0 1\.0|Creative Commons Zero"),
    ("CC-BY-4.0", r"Creative Commons Attribution 4\.0|CC BY 4\.0"),
    ("Zlib", r"zlib License|zlib/libpng"),
    ("WTFPL", r"WTFPL|Do What The.*You Want"),
]

SPDX_HEADER_PATTERN = re.compile(r'SPDX-License-Identifier:\s*(\S+)')


def find_license_file(directory: str) -> Optional[Path]:
    for pattern in LICENSE_FILE_PATTERNS:
        candidate = Path(directory) / pattern
        if candidate.is_file():
            return candidate
    return None


def detect_spdx_from_content(license_file: Path) -> str:
    """SPDX id from a license file, or NOASSERTION."""
    try:
        text = Path(license_file).read_text(encoding='utf-8', errors='ignore')
    except OSError:
        return NOASSERTION

    header = SPDX_HEADER_PATTERN.search(text)
    if header:
        return header.group(1)

    head = "\n".join(text.splitlines()[:150])
    for spdx_id, pattern in CONTENT_PATTERNS:
        if re.search(pattern, head, re.IGNORECASE | re.DOTALL):
            return spdx_id
    return NOASSERTION


def license_name(spdx_id: str) -> str:
    return SPDX_NAMES.get(spdx_id, "Unknown")


def license_category(spdx_id: str) -> str:
    return LICENSE_CATEGORIES.get(spdx_id, "unknown")


def detect_license(directory: str, gh: Optional[GitHubCLI] = None) -> LicenseInfo:
    """Detect a directory's license, falling back to the GitHub API."""
    spdx_id = NOASSERTION
    source = "none"

    license_file = find_license_file(directory)
    if license_file is not None:
        spdx_id = detect_spdx_from_content(license_file)
        source = f"file:{license_file.name}"

    if spdx_id == NOASSERTION and command_exists("git"):
        owner, repo = parse_github_url(GitClient(directory).remote_url())
        if owner and repo:
            gh = gh or GitHubCLI()
            remote_spdx = gh.repo_license(owner, repo)
            if remote_spdx and remote_spdx != NOASSERTION:
                spdx_id = remote_spdx
                source = "github-api"

    return LicenseInfo(
        spdx_id=spdx_id,
        name=license_name(spdx_id),
        source=source,
        path=str(directory),
        category=license_category(spdx_id)
    )


def scan_submodule_licenses(root_dir: str, recursive: bool = False,
                            gh: Optional[GitHubCLI] = None) -> List[LicenseInfo]:
    """Licenses of the submodules declared in root_dir/.gitmodules."""
    gitmodules = Path(root_dir) / ".gitmodules"
    if not gitmodules.is_file():
        return []

    results = []
    for sub_path in GitClient(root_dir).submodule_paths(str(gitmodules)):
        full_path = Path(root_dir) / sub_path
        if not full_path.is_dir():
            continue
        results.append(detect_license(str(full_path), gh))
        if recursive and (full_path / ".gitmodules").is_file():
            results.extend(scan_submodule_licenses(str(full_path), True, gh))
    return results


def check_license_compatibility(target_license: str, licenses: List[str]) -> List[str]:
    """
    Issues with using `licenses` inside a project under `target_license`.

    Only strong copyleft inside a permissive project is flagged.

    Returns:
        List of human-readable issues; empty when compatible
    """
    issues = []
    target_category = license_category(target_license)
    for spdx_id in licenses:
        if target_category == "permissive" and license_category(spdx_id) == "copyleft-strong":
            issues.append(f"{spdx_id} (copyleft) incompatible with {target_license} (permissive)")
    return issues


def build_report(root: LicenseInfo, submodules: List[LicenseInfo], deep_scan: bool) -> dict:
    return {
        'root': root.to_dict(),
        'submodules': [s.to_dict() for s in submodules],
        'scan_date': datetime.now().astimezone().isoformat(timespec='seconds'),
        'deep_scan': deep_scan,
    }
