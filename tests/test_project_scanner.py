#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Test project type detection and manifest parsing
"""

import json
import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from codecontext.intelligence import ProjectAnalysisError, ProjectScanner, ProjectType


def write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


CSPROJ = """<?xml version="1.0" encoding="utf-8"?>
<Project Sdk="Microsoft.NET.Sdk.Web">
  <PropertyGroup>
    <TargetFramework>net8.0</TargetFramework>
    <Version>1.2.3</Version>
  </PropertyGroup>
  <ItemGroup>
    <PackageReference Include="Microsoft.AspNetCore.Components.Web" Version="8.0.0" />
    <PackageReference Include="Serilog">
      <Version>3.1.1</Version>
    </PackageReference>
  </ItemGroup>
</Project>
"""

COUNTER_CS = """using Microsoft.AspNetCore.Components;

namespace BlazorApp.Pages
{
    // class Commented : ComponentBase {}
    public partial class Counter : ComponentBase
    {
        private int currentCount = 0;

        protected override void OnInitialized()
        {
            currentCount = 1;
        }

        private async void LoadAsync()
        {
            await Task.Delay(1);
        }

        public async Task<List<int>> GetItemsAsync()
        {
            return new List<int>();
        }
    }
}
"""

POM = """<?xml version="1.0" encoding="UTF-8"?>
<project xmlns="http://maven.apache.org/POM/4.0.0">
  <modelVersion>4.0.0</modelVersion>
  <parent>
    <groupId>org.springframework.boot</groupId>
    <artifactId>spring-boot-starter-parent</artifactId>
    <version>3.2.0</version>
  </parent>
  <artifactId>demo</artifactId>
  <version>0.0.1</version>
  <dependencies>
    <dependency>
      <groupId>org.springframework.boot</groupId>
      <artifactId>spring-boot-starter-web</artifactId>
    </dependency>
    <dependency>
      <groupId>org.junit.jupiter</groupId>
      <artifactId>junit-jupiter</artifactId>
      <version>5.10.0</version>
      <scope>test</scope>
    </dependency>
  </dependencies>
</project>
"""


class TestDetection:

    def setup_method(self):
        self.scanner = ProjectScanner()

    @pytest.mark.parametrize("manifest, expected", [
        ("App.csproj", ProjectType.DOTNET),
        ("App.sln", ProjectType.DOTNET),
        ("Cargo.toml", ProjectType.RUST),
        ("composer.json", ProjectType.PHP),
        ("package.json", ProjectType.NODE),
        ("pyproject.toml", ProjectType.PYTHON),
        ("requirements.txt", ProjectType.PYTHON),
        ("go.mod", ProjectType.GO),
        ("pom.xml", ProjectType.JAVA),
        ("build.gradle.kts", ProjectType.JAVA),
        ("README.md", ProjectType.UNKNOWN),
    ])
    def test_manifest_detection(self, tmp_path, manifest, expected):
        write(tmp_path / manifest, "")
        assert self.scanner.detect_project_type(tmp_path) == expected

    def test_composer_wins_over_package_json(self, tmp_path):
        write(tmp_path / "composer.json", "{}")
        write(tmp_path / "package.json", "{}")
        assert self.scanner.detect_project_type(tmp_path) == ProjectType.PHP

    def test_not_a_directory(self, tmp_path):
        file_path = write(tmp_path / "file.txt", "x")
        with pytest.raises(ProjectAnalysisError) as exc_info:
            self.scanner.scan_project(file_path)
        assert "Cargo.toml" in exc_info.value.hint


class TestManifests:

    def setup_method(self):
        self.scanner = ProjectScanner()

    def test_dotnet(self, tmp_path):
        write(tmp_path / "BlazorApp.csproj", CSPROJ)
        write(tmp_path / "Pages" / "Counter.cs", COUNTER_CS)
        write(tmp_path / "obj" / "Generated.cs", "public class Generated {}")

        summary = self.scanner.scan_project(tmp_path)
        assert summary.project_type == ProjectType.DOTNET
        assert summary.name == "BlazorApp"
        assert summary.version == "1.2.3"
        assert summary.metadata["target_framework"] == "net8.0"
        assert summary.metadata["sdk"] == "Microsoft.NET.Sdk.Web"
        assert [(d.name, d.version) for d in summary.dependencies] == [
            ("Microsoft.AspNetCore.Components.Web", "8.0.0"),
            ("Serilog", "3.1.1"),
        ]

        assert [f.path.name for f in summary.files] == ["Counter.cs"]
        [counter] = summary.files[0].symbols
        assert counter.name == "Counter"
        assert counter.base == "ComponentBase"
        methods = {m.name: m for m in counter.children}
        assert set(methods) == {"OnInitialized", "LoadAsync", "GetItemsAsync"}
        assert not methods["OnInitialized"].is_async
        assert methods["LoadAsync"].is_async
        assert methods["LoadAsync"].return_type == "void"
        assert methods["GetItemsAsync"].return_type == "Task<List<int>>"

    def test_rust(self, tmp_path):
        write(tmp_path / "Cargo.toml", """
[package]
name = "server"
version = "0.3.0"
edition = "2021"

[dependencies]
axum = "0.7"
tokio = { version = "1", features = ["full"] }
shared = { path = "../shared" }

[dev-dependencies]
tempfile = "3"
""")
        write(tmp_path / "src" / "main.rs", "fn main() {}")
        write(tmp_path / "target" / "debug" / "build.rs", "fn main() {}")

        summary = self.scanner.scan_project(tmp_path)
        assert summary.project_type == ProjectType.RUST
        assert (summary.name, summary.version) == ("server", "0.3.0")
        assert summary.metadata["rust_edition"] == "2021"
        assert summary.metadata["build_command"] == "cargo build"

        deps = {d.name: d for d in summary.dependencies}
        assert deps["tokio"].version == "1"
        assert deps["shared"].version == "path:../shared"
        assert deps["tempfile"].dev_only
        assert not deps["axum"].dev_only
        assert [f.path.name for f in summary.files] == ["main.rs"]

    def test_node(self, tmp_path):
        write(tmp_path / "package.json", json.dumps({
            "name": "api",
            "version": "2.0.0",
            "main": "index.js",
            "engines": {"node": ">=18"},
            "scripts": {"build": "tsc"},
            "dependencies": {"express": "^4.18.0"},
            "devDependencies": {"jest": "^29.0.0"},
        }))
        write(tmp_path / "index.js", "module.exports = {}")
        write(tmp_path / "node_modules" / "express" / "index.js", "")
        write(tmp_path / ".cache" / "x.js", "")

        summary = self.scanner.scan_project(tmp_path)
        assert summary.project_type == ProjectType.NODE
        assert summary.name == "api"
        assert summary.metadata["entry_point"] == "index.js"
        assert summary.metadata["node_version"] == ">=18"
        assert summary.metadata["build_command"] == "npm run build"
        assert [d.name for d in summary.production_dependencies] == ["express"]
        assert [d.name for d in summary.dev_dependencies] == ["jest"]
        assert [f.path.name for f in summary.files] == ["index.js"]

    def test_python(self, tmp_path):
        write(tmp_path / "pyproject.toml", """
[project]
name = "service"
version = "0.1.0"
requires-python = ">=3.11"
dependencies = ["fastapi>=0.100", "uvicorn[standard]==0.23.0; python_version >= '3.8'"]

[project.optional-dependencies]
test = ["pytest"]
""")
        write(tmp_path / "requirements.txt", "# pinned\nhttpx==0.27.0\n-r other.txt\n")
        write(tmp_path / "app" / "main.py", """
class Handler:
    async def get(self) -> dict:
        return {}

def helper():
    pass
""")

        summary = self.scanner.scan_project(tmp_path)
        assert summary.project_type == ProjectType.PYTHON
        assert (summary.name, summary.version) == ("service", "0.1.0")
        assert summary.metadata["python_version"] == ">=3.11"

        deps = {d.name: d for d in summary.dependencies}
        assert deps["fastapi"].version == ">=0.100"
        assert deps["uvicorn"].version == "0.23.0"
        assert deps["pytest"].dev_only
        assert deps["httpx"].version == "0.27.0"

        symbols = list(summary.iter_symbols())
        assert [s.name for s in symbols] == ["Handler", "get", "helper"]
        assert symbols[1].is_async

    def test_go(self, tmp_path):
        write(tmp_path / "go.mod", """module github.com/acme/api

go 1.22

require (
    github.com/gin-gonic/gin v1.9.1
    github.com/stretchr/testify v1.8.4 // indirect
)

require golang.org/x/text v0.14.0
""")
        summary = self.scanner.scan_project(tmp_path)
        assert summary.name == "github.com/acme/api"
        assert summary.metadata["go_version"] == "1.22"
        assert [(d.name, d.version) for d in summary.dependencies] == [
            ("github.com/gin-gonic/gin", "v1.9.1"),
            ("github.com/stretchr/testify", "v1.8.4"),
            ("golang.org/x/text", "v0.14.0"),
        ]

    def test_java(self, tmp_path):
        write(tmp_path / "pom.xml", POM)
        summary = self.scanner.scan_project(tmp_path)

        assert (summary.name, summary.version) == ("demo", "0.0.1")
        assert summary.metadata["build_command"] == "mvn package"
        deps = {d.name: d for d in summary.dependencies}
        assert deps["org.springframework.boot:spring-boot-starter-web"].version == "*"
        assert deps["org.junit.jupiter:junit-jupiter"].dev_only

    def test_php_laravel(self, tmp_path):
        write(tmp_path / "composer.json", json.dumps({
            "name": "acme/shop",
            "require": {"php": "^8.2", "laravel/framework": "^11.0"},
            "require-dev": {"phpunit/phpunit": "^10.0"},
        }))
        write(tmp_path / "package.json", json.dumps({
            "dependencies": {"vue": "^3.4"},
            "devDependencies": {"vite": "^5.0"},
        }))
        write(tmp_path / "app" / "User.php", "<?php class User {}")
        write(tmp_path / "vendor" / "lib.php", "<?php")

        summary = self.scanner.scan_project(tmp_path)
        assert summary.project_type == ProjectType.PHP
        assert summary.name == "acme/shop"
        assert summary.metadata["php_version"] == "^8.2"
        assert summary.metadata["framework"] == "laravel"
        assert summary.metadata["frontend"] == "vue"
        assert summary.metadata["bundler"] == "vite"
        assert summary.metadata["entry_point"] == "public/index.php"
        assert "php" not in {d.name for d in summary.dependencies}
        assert [f.path.name for f in summary.files] == ["User.php"]

    def test_php_wordpress_by_structure(self, tmp_path):
        write(tmp_path / "composer.json", "{}")
        write(tmp_path / "wp-config.php", "<?php")
        summary = self.scanner.scan_project(tmp_path)
        assert summary.metadata["framework"] == "wordpress"
        assert summary.metadata["entry_point"] == "index.php"

    def test_unknown(self, tmp_path):
        write(tmp_path / "notes.txt", "hello")
        summary = self.scanner.scan_project(tmp_path)
        assert summary.project_type == ProjectType.UNKNOWN
        assert summary.name == tmp_path.name
        assert summary.files == []

    def test_malformed_manifest(self, tmp_path):
        write(tmp_path / "Cargo.toml", "[package\nname = ")
        with pytest.raises(ProjectAnalysisError, match="Cannot parse manifest"):
            self.scanner.scan_project(tmp_path)

    def test_unreadable_directory_reports_hint(self, tmp_path, monkeypatch):
        def denied(project_dir):
            raise PermissionError(13, "Permission denied", str(project_dir))

        monkeypatch.setattr(self.scanner, "detect_project_type", denied)
        with pytest.raises(ProjectAnalysisError, match="Cannot read project directory") as exc_info:
            self.scanner.scan_project(tmp_path)
        assert "package.json" in exc_info.value.hint

    def test_large_files_listed_without_symbols(self, tmp_path):
        write(tmp_path / "requirements.txt", "")
        write(tmp_path / "big.py", "def f():\n    pass\n")
        scanner = ProjectScanner(max_file_size_mb=0)

        summary = scanner.scan_project(tmp_path)
        assert [f.path.name for f in summary.files] == ["big.py"]
        assert summary.files[0].symbols == []
