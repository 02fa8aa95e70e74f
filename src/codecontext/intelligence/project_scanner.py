#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Project Scanner
Detect a project's ecosystem from its manifest files, parse dependencies and
metadata, and collect source files with their symbols
"""

import json
import logging
import os
import re
import tomllib
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple, Union

from ..parsers import CSharpParser, PythonParser, Symbol
from ..utils.constants import EXCLUDED_DIRS, EXPECTED_MANIFESTS


class ProjectType(Enum):
    """Detected project type"""
    DOTNET = "dotnet"
    RUST = "rust"
    NODE = "node"
    PYTHON = "python"
    GO = "go"
    JAVA = "java"
    PHP = "php"
    UNKNOWN = "unknown"


@dataclass
class Dependency:
    """Declared package dependency"""
    name: str
    version: str
    dev_only: bool = False


@dataclass
class SourceFile:
    """Source file found in the project"""
    path: Path
    language: str
    size_bytes: int
    symbols: List[Symbol] = field(default_factory=list)


@dataclass
class ProjectSummary:
    """Everything the analyzer learned about a project"""
    path: Path
    name: str
    project_type: ProjectType
    version: Optional[str] = None
    dependencies: List[Dependency] = field(default_factory=list)
    files: List[SourceFile] = field(default_factory=list)
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def production_dependencies(self) -> List[Dependency]:
        return [d for d in self.dependencies if not d.dev_only]

    @property
    def dev_dependencies(self) -> List[Dependency]:
        return [d for d in self.dependencies if d.dev_only]

    def iter_symbols(self):
        """Yield every symbol of every file, nested ones included"""
        for source_file in self.files:
            for symbol in source_file.symbols:
                yield from symbol.walk()


class ProjectAnalysisError(Exception):
    """A project could not be analyzed"""

    def __init__(self, message: str):
        self.hint = (
            "Make sure the directory contains a valid project file ("
            + ", ".join(EXPECTED_MANIFESTS) + ")."
        )
        super().__init__(message)


# Parsed manifest: name, version, dependencies, metadata
ManifestInfo = Tuple[str, Optional[str], List[Dependency], Dict[str, str]]


class ProjectScanner:
    """Multi-language project scanner"""

    # Source extensions analyzed for each project type
    SOURCE_EXTENSIONS = {
        ProjectType.DOTNET: {'cs', 'fs', 'vb', 'razor'},
        ProjectType.RUST: {'rs'},
        ProjectType.NODE: {'js', 'ts', 'jsx', 'tsx', 'mjs', 'cjs', 'vue', 'svelte'},
        ProjectType.PYTHON: {'py', 'pyi'},
        ProjectType.GO: {'go'},
        ProjectType.JAVA: {'java', 'kt', 'kts', 'scala'},
        ProjectType.PHP: {'php', 'twig', 'js', 'ts', 'vue'},
        ProjectType.UNKNOWN: set(),
    }

    # PHP framework detection by exact package name
    PHP_FRAMEWORK_PACKAGES = {
        'laravel/framework': 'laravel',
        'symfony/framework-bundle': 'symfony',
        'codeigniter4/framework': 'codeigniter',
        'cakephp/cakephp': 'cakephp',
        'slim/slim': 'slim',
        'drupal/core': 'drupal',
    }

    def __init__(self, ignore_dirs: Optional[Set[str]] = None,
                 max_file_size_mb: int = 10, extract_symbols: bool = True):
        """
        Initialize scanner

        Args:
            ignore_dirs: Directory names never descended into
            max_file_size_mb: Files above this size are listed without symbols
            extract_symbols: Whether to parse Python/C# files for symbols
        """
        self.logger = logging.getLogger('codecontext.project_scanner')
        self.ignore_dirs = set(ignore_dirs) if ignore_dirs is not None else set(EXCLUDED_DIRS)
        self.max_file_size = max_file_size_mb * 1024 * 1024
        self.extract_symbols = extract_symbols
        self.python_parser = PythonParser()
        self.csharp_parser = CSharpParser()

    def scan_project(self, project_path: Union[str, Path]) -> ProjectSummary:
        """
        Scan project directory

        Args:
            project_path: Project path

        Returns:
            Project summary

        Raises:
            ProjectAnalysisError: If the path is not a directory or the manifest is unusable
        """
        project_dir = Path(project_path)
        if not project_dir.is_dir():
            raise ProjectAnalysisError(f"Not a directory: {project_path}")

        self.logger.info(f"Starting project scan: {project_dir}")
        try:
            project_type = self.detect_project_type(project_dir)
        except OSError as e:
            raise ProjectAnalysisError(f"Cannot read project directory: {e}") from e
        self.logger.debug(f"Detected project type: {project_type.value}")

        parsers = {
            ProjectType.DOTNET: self._parse_dotnet_project,
            ProjectType.RUST: self._parse_rust_project,
            ProjectType.NODE: self._parse_node_project,
            ProjectType.PYTHON: self._parse_python_project,
            ProjectType.GO: self._parse_go_project,
            ProjectType.JAVA: self._parse_java_project,
            ProjectType.PHP: self._parse_php_project,
            ProjectType.UNKNOWN: self._parse_unknown_project,
        }

        try:
            name, version, dependencies, metadata = parsers[project_type](project_dir)
        except ProjectAnalysisError:
            raise
        except (OSError, UnicodeDecodeError) as e:
            raise ProjectAnalysisError(f"Cannot read manifest: {e}") from e
        except (ValueError, ET.ParseError) as e:
            # json.JSONDecodeError and tomllib.TOMLDecodeError are ValueErrors
            raise ProjectAnalysisError(f"Cannot parse manifest: {e}") from e

        files = self._find_source_files(project_dir, self.SOURCE_EXTENSIONS[project_type])

        summary = ProjectSummary(
            path=project_dir,
            name=name,
            project_type=project_type,
            version=version,
            dependencies=dependencies,
            files=files,
            metadata=metadata,
        )

        self.logger.info(
            f"Project scan completed: {name} ({project_type.value}), "
            f"{len(dependencies)} dependencies, {len(files)} source files"
        )
        return summary

    # ==================== Detection ====================

    def detect_project_type(self, project_dir: Path) -> ProjectType:
        """Identify project type from manifest files, in priority order"""
        if self._has_extension(project_dir, ('.csproj', '.fsproj', '.sln')):
            return ProjectType.DOTNET
        if (project_dir / 'Cargo.toml').exists():
            return ProjectType.RUST
        # composer.json before package.json: PHP apps often ship both
        if (project_dir / 'composer.json').exists():
            return ProjectType.PHP
        if (project_dir / 'package.json').exists():
            return ProjectType.NODE
        if any((project_dir / f).exists() for f in ('pyproject.toml', 'setup.py', 'requirements.txt')):
            return ProjectType.PYTHON
        if (project_dir / 'go.mod').exists():
            return ProjectType.GO
        if any((project_dir / f).exists() for f in ('pom.xml', 'build.gradle', 'build.gradle.kts')):
            return ProjectType.JAVA
        return ProjectType.UNKNOWN

    def _has_extension(self, project_dir: Path, suffixes: Tuple[str, ...]) -> bool:
        return any(entry.suffix in suffixes for entry in project_dir.iterdir() if entry.is_file())

    # ==================== Manifest Parsers ====================

    def _parse_dotnet_project(self, project_dir: Path) -> ManifestInfo:
        """Parse the first .csproj/.fsproj file"""
        manifests = sorted(
            p for p in project_dir.iterdir() if p.suffix in ('.csproj', '.fsproj')
        )
        if not manifests:
            # Solution file only
            return project_dir.name, None, [], {'build_command': 'dotnet build'}

        manifest = manifests[0]
        root = ET.fromstring(manifest.read_bytes())

        metadata = {'build_command': 'dotnet build'}
        target = self._xml_text(root, 'TargetFramework') or self._xml_text(root, 'TargetFrameworks')
        if target:
            metadata['target_framework'] = target
        sdk = root.get('Sdk')
        if sdk:
            metadata['sdk'] = sdk

        dependencies = []
        for element in root.iter():
            if self._local_name(element.tag) != 'PackageReference':
                continue
            name = element.get('Include') or element.get('Update')
            if not name:
                continue
            version = element.get('Version') or self._xml_text(element, 'Version') or '*'
            dependencies.append(Dependency(name=name, version=version))

        version = self._xml_text(root, 'Version')
        return manifest.stem, version, dependencies, metadata

    def _parse_rust_project(self, project_dir: Path) -> ManifestInfo:
        """Parse Cargo.toml"""
        with open(project_dir / 'Cargo.toml', 'rb') as f:
            data = tomllib.load(f)

        package = data.get('package', {})
        metadata = {'entry_point': 'src/main.rs', 'build_command': 'cargo build'}
        if package.get('edition'):
            metadata['rust_edition'] = str(package['edition'])

        dependencies = []
        for table, dev_only in (('dependencies', False), ('dev-dependencies', True)):
            for name, spec in data.get(table, {}).items():
                dependencies.append(Dependency(
                    name=name,
                    version=self._cargo_version(spec),
                    dev_only=dev_only,
                ))

        version = package.get('version')
        return (
            package.get('name', project_dir.name),
            version if isinstance(version, str) else None,
            dependencies,
            metadata,
        )

    def _cargo_version(self, spec: Any) -> str:
        if isinstance(spec, str):
            return spec
        if isinstance(spec, dict):
            if 'version' in spec:
                return str(spec['version'])
            if 'path' in spec:
                return f"path:{spec['path']}"
            if 'git' in spec:
                return f"git:{spec['git']}"
        return '*'

    def _parse_node_project(self, project_dir: Path) -> ManifestInfo:
        """Parse package.json"""
        data = self._read_json(project_dir / 'package.json')

        dependencies = self._json_dependencies(data.get('dependencies'), dev_only=False)
        dependencies += self._json_dependencies(data.get('devDependencies'), dev_only=True)

        metadata = {}
        if isinstance(data.get('main'), str):
            metadata['entry_point'] = data['main']
        engines = data.get('engines')
        if isinstance(engines, dict) and isinstance(engines.get('node'), str):
            metadata['node_version'] = engines['node']
        scripts = data.get('scripts')
        if isinstance(scripts, dict) and 'build' in scripts:
            metadata['build_command'] = 'npm run build'

        version = data.get('version')
        return (
            str(data.get('name') or project_dir.name),
            version if isinstance(version, str) else None,
            dependencies,
            metadata,
        )

    def _parse_python_project(self, project_dir: Path) -> ManifestInfo:
        """Parse pyproject.toml and requirements files"""
        name = project_dir.name
        version = None
        dependencies: List[Dependency] = []
        metadata = {'entry_point': 'main.py', 'build_command': 'pip install .'}

        pyproject = project_dir / 'pyproject.toml'
        if pyproject.exists():
            with open(pyproject, 'rb') as f:
                data = tomllib.load(f)

            project = data.get('project', {})
            poetry = data.get('tool', {}).get('poetry', {})
            name = project.get('name') or poetry.get('name') or name
            version = project.get('version') or poetry.get('version')
            if project.get('requires-python'):
                metadata['python_version'] = str(project['requires-python'])

            for requirement in project.get('dependencies', []):
                dependencies.append(self._parse_requirement(requirement, dev_only=False))
            for group in project.get('optional-dependencies', {}).values():
                for requirement in group:
                    dependencies.append(self._parse_requirement(requirement, dev_only=True))

            for dep_name, spec in poetry.get('dependencies', {}).items():
                if dep_name == 'python':
                    metadata['python_version'] = str(spec)
                    continue
                dependencies.append(Dependency(name=dep_name, version=self._cargo_version(spec)))

        for filename, dev_only in (('requirements.txt', False), ('requirements-dev.txt', True)):
            requirements = project_dir / filename
            if not requirements.exists():
                continue
            for line in requirements.read_text(encoding='utf-8').splitlines():
                line = line.split('#', 1)[0].strip()
                if not line or line.startswith('-'):
                    continue
                dependencies.append(self._parse_requirement(line, dev_only=dev_only))

        return name, version, dependencies, metadata

    _REQUIREMENT_RE = re.compile(r'^\s*([A-Za-z0-9][A-Za-z0-9._\-]*)(\[[^\]]*\])?\s*(.*)$')

    def _parse_requirement(self, requirement: str, dev_only: bool) -> Dependency:
        """Split ``package>=1.0; marker`` into name and version spec"""
        requirement = requirement.split(';', 1)[0].strip()
        match = self._REQUIREMENT_RE.match(requirement)
        if not match:
            return Dependency(name=requirement, version='*', dev_only=dev_only)
        spec = match.group(3).strip()
        if spec.startswith('=='):
            spec = spec[2:].strip()
        return Dependency(name=match.group(1), version=spec or '*', dev_only=dev_only)

    def _parse_go_project(self, project_dir: Path) -> ManifestInfo:
        """Parse go.mod"""
        content = (project_dir / 'go.mod').read_text(encoding='utf-8')

        name = project_dir.name
        metadata = {'entry_point': 'main.go', 'build_command': 'go build'}
        dependencies = []
        in_require = False

        for raw_line in content.splitlines():
            line = raw_line.split('//', 1)[0].strip()
            if line.startswith('module '):
                name = line[len('module '):].strip()
            elif line.startswith('go '):
                metadata['go_version'] = line[len('go '):].strip()
            elif line == 'require (':
                in_require = True
            elif line == ')':
                in_require = False
            elif line.startswith('require ') or (in_require and line):
                parts = line[len('require '):].split() if line.startswith('require ') else line.split()
                if len(parts) >= 2:
                    dependencies.append(Dependency(name=parts[0], version=parts[1]))

        return name, None, dependencies, metadata

    def _parse_java_project(self, project_dir: Path) -> ManifestInfo:
        """Parse pom.xml, or note a Gradle build"""
        name = project_dir.name
        version = None
        dependencies = []
        metadata = {}

        pom = project_dir / 'pom.xml'
        if pom.exists():
            root = ET.fromstring(pom.read_bytes())
            name = self._xml_child_text(root, 'artifactId') or name
            version = self._xml_child_text(root, 'version')
            metadata['build_command'] = 'mvn package'

            for element in root.iter():
                if self._local_name(element.tag) != 'dependency':
                    continue
                group = self._xml_child_text(element, 'groupId') or ''
                artifact = self._xml_child_text(element, 'artifactId') or ''
                dependencies.append(Dependency(
                    name=f"{group}:{artifact}" if group else artifact,
                    version=self._xml_child_text(element, 'version') or '*',
                    dev_only=(self._xml_child_text(element, 'scope') == 'test'),
                ))

        if (project_dir / 'build.gradle').exists() or (project_dir / 'build.gradle.kts').exists():
            metadata['build_command'] = 'gradle build'

        return name, version, dependencies, metadata

    def _parse_php_project(self, project_dir: Path) -> ManifestInfo:
        """Parse composer.json plus frontend hints from package.json"""
        data = self._read_json(project_dir / 'composer.json')

        require = data.get('require') if isinstance(data.get('require'), dict) else {}
        dependencies = self._json_dependencies(
            {k: v for k, v in require.items() if k != 'php'}, dev_only=False
        )
        dependencies += self._json_dependencies(data.get('require-dev'), dev_only=True)

        metadata = {}
        if isinstance(require.get('php'), str):
            metadata['php_version'] = require['php']

        framework = self._detect_php_framework(dependencies, project_dir)
        if framework:
            metadata['framework'] = framework

        package_json = project_dir / 'package.json'
        if package_json.exists():
            try:
                package = self._read_json(package_json)
            except (OSError, ValueError) as e:
                self.logger.warning(f"Ignoring unreadable package.json in PHP project: {e}")
                package = {}
            deps = package.get('dependencies') if isinstance(package.get('dependencies'), dict) else {}
            dev_deps = package.get('devDependencies') if isinstance(package.get('devDependencies'), dict) else {}
            if 'vue' in deps or 'vue' in dev_deps:
                metadata['frontend'] = 'vue'
            if 'react' in deps or 'react' in dev_deps:
                metadata['frontend'] = 'react'
            if 'vite' in dev_deps:
                metadata['bundler'] = 'vite'
            if 'laravel-mix' in dev_deps:
                metadata['bundler'] = 'laravel-mix'

        if framework in ('laravel', 'symfony'):
            metadata['entry_point'] = 'public/index.php'
            metadata['build_command'] = (
                'php artisan serve' if framework == 'laravel' else 'symfony server:start'
            )
        else:
            metadata['entry_point'] = 'index.php'
            metadata['build_command'] = 'php -S localhost:8000'

        version = data.get('version')
        return (
            str(data.get('name') or project_dir.name),
            version if isinstance(version, str) else None,
            dependencies,
            metadata,
        )

    def _detect_php_framework(self, dependencies: List[Dependency], project_dir: Path) -> Optional[str]:
        """Detect PHP framework from dependencies and directory structure"""
        names = {d.name for d in dependencies}
        for package, framework in self.PHP_FRAMEWORK_PACKAGES.items():
            if package in names:
                return framework
        if (project_dir / 'artisan').exists():
            return 'laravel'
        if (project_dir / 'wp-config.php').exists() or (project_dir / 'wp-content').exists():
            return 'wordpress'
        if any(name.startswith('yiisoft/') for name in names):
            return 'yii'
        return None

    def _parse_unknown_project(self, project_dir: Path) -> ManifestInfo:
        return project_dir.name, None, [], {}

    # ==================== Helpers ====================

    def _read_json(self, path: Path) -> Dict[str, Any]:
        data = json.loads(path.read_text(encoding='utf-8'))
        if not isinstance(data, dict):
            raise ValueError(f"{path.name} must contain a JSON object")
        return data

    def _json_dependencies(self, deps: Any, dev_only: bool) -> List[Dependency]:
        if not isinstance(deps, dict):
            return []
        return [
            Dependency(name=name, version=version if isinstance(version, str) else '*', dev_only=dev_only)
            for name, version in deps.items()
        ]

    def _local_name(self, tag: Any) -> str:
        """Strip an XML namespace from a tag"""
        if not isinstance(tag, str):
            return ''
        return tag.rsplit('}', 1)[-1]

    def _xml_text(self, root: ET.Element, name: str) -> Optional[str]:
        """Text of the first descendant element with this local name"""
        for element in root.iter():
            if self._local_name(element.tag) == name and element.text and element.text.strip():
                return element.text.strip()
        return None

    def _xml_child_text(self, parent: ET.Element, name: str) -> Optional[str]:
        """Text of a direct child element with this local name"""
        for element in parent:
            if self._local_name(element.tag) == name and element.text and element.text.strip():
                return element.text.strip()
        return None

    # ==================== Source Files ====================

    def _find_source_files(self, project_dir: Path, extensions: Set[str]) -> List[SourceFile]:
        """Walk the project, skipping hidden and excluded directories, without following links"""
        files = []
        if not extensions:
            return files

        for dirpath, dirnames, filenames in os.walk(project_dir, followlinks=False):
            dirnames[:] = sorted(
                d for d in dirnames if not d.startswith('.') and d not in self.ignore_dirs
            )
            for filename in sorted(filenames):
                if filename.startswith('.'):
                    continue
                extension = filename.rsplit('.', 1)[-1] if '.' in filename else ''
                if extension not in extensions:
                    continue

                file_path = Path(dirpath) / filename
                try:
                    size = file_path.stat().st_size
                except OSError as e:
                    self.logger.warning(f"Cannot stat {file_path}: {e}")
                    continue

                files.append(SourceFile(
                    path=file_path,
                    language=extension,
                    size_bytes=size,
                    symbols=self._extract_symbols(file_path, extension, size),
                ))

        return files

    def _extract_symbols(self, file_path: Path, extension: str, size: int) -> List[Symbol]:
        if not self.extract_symbols or size > self.max_file_size:
            return []
        if extension == 'py':
            return self.python_parser.parse_file(file_path)
        if extension == 'cs':
            return self.csharp_parser.parse_file(file_path)
        return []
