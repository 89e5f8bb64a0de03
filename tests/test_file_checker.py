"""Tests for the static file checker (manifests, Dockerfiles, compose files)."""

from compliance.checkers.file_checker import FileChecker
from compliance.core.models import CheckOptions, CheckStatus, Severity
from tests.conftest import COMPOSE_INSECURE, DEPLOYMENT_LATEST, DOCKERFILE_NO_USER


def run(settings, path) -> list:
    return FileChecker(settings).run(CheckOptions(path=str(path)))


def pairs(results):
    return [(r.rule_id, r.severity) for r in results]


class TestKubernetesManifests:

    def test_latest_image_without_hardening(self, settings, tmp_path, write_file):
        path = write_file("deploy/app.yaml", DEPLOYMENT_LATEST)
        results = run(settings, tmp_path)

        assert pairs(results) == [
            ("FILE-K8S-001", Severity.MEDIUM),
            ("FILE-K8S-002", Severity.MEDIUM),
            ("FILE-K8S-003", Severity.HIGH),
            ("FILE-K8S-004", Severity.MEDIUM),
        ]
        assert all(r.status == CheckStatus.FAILED for r in results)
        assert all(r.resource == str(path) for r in results)

    def test_hardened_pod_passes(self, settings, tmp_path, write_file):
        write_file("pod.yml", """\
apiVersion: v1
kind: Pod
metadata:
  name: web
spec:
  containers:
    - name: web
      image: nginx:1.25
      resources:
        limits:
          memory: 128Mi
      securityContext:
        runAsNonRoot: true
      livenessProbe:
        httpGet:
          path: /
          port: 80
""")
        assert run(settings, tmp_path) == []

    def test_resources_without_limits(self, settings, tmp_path, write_file):
        write_file("pod.yaml", """\
apiVersion: v1
kind: Pod
spec:
  containers:
    - name: web
      image: nginx:1.25
      resources:
        requests:
          cpu: 100m
      securityContext: {runAsNonRoot: true}
      livenessProbe: {exec: {command: ["true"]}}
""")
        assert [r.rule_id for r in run(settings, tmp_path)] == ["FILE-K8S-002"]

    def test_multi_document_and_cronjob(self, settings, tmp_path, write_file):
        write_file("all.yaml", """\
apiVersion: v1
kind: Service
metadata:
  name: svc
---
apiVersion: batch/v1
kind: CronJob
metadata:
  name: nightly
spec:
  jobTemplate:
    spec:
      template:
        spec:
          containers:
            - name: backup
              image: backup
""")
        results = run(settings, tmp_path)
        assert [r.rule_id for r in results] == ["FILE-K8S-001", "FILE-K8S-002", "FILE-K8S-003", "FILE-K8S-004"]
        assert results[0].message == "Container 'backup' uses latest or no tag"

    def test_non_manifest_yaml_ignored(self, settings, tmp_path, write_file):
        write_file("values.yaml", "replicas: 3\nimage: nginx\n")
        assert run(settings, tmp_path) == []

    def test_malformed_yaml_is_skipped(self, settings, tmp_path, write_file):
        write_file("a-broken.yaml", "apiVersion: v1\nkind: Pod\nspec: [unclosed\n")
        write_file("b-good.yaml", DEPLOYMENT_LATEST)
        results = run(settings, tmp_path)
        assert len(results) == 4
        assert all(r.resource.endswith("b-good.yaml") for r in results)

    def test_unconstructible_date_is_skipped(self, settings, tmp_path, write_file):
        write_file("a-bad.yaml", "apiVersion: v1\nkind: ConfigMap\ndata:\n  created: 2024-13-45\n")
        write_file("b-good.yaml", DEPLOYMENT_LATEST)

        checker = FileChecker(settings)
        results = checker.run(CheckOptions(path=str(tmp_path)))

        assert len(results) == 4
        assert all(r.resource.endswith("b-good.yaml") for r in results)
        assert checker.skipped_files_count == 1

    def test_non_string_kind_is_ignored(self, settings, tmp_path, write_file):
        write_file("a-odd.yaml", "apiVersion: v1\nkind: [Pod]\nspec:\n  containers: []\n")
        write_file("b-good.yaml", DEPLOYMENT_LATEST)
        results = run(settings, tmp_path)

        assert len(results) == 4
        assert all(r.resource.endswith("b-good.yaml") for r in results)

    def test_empty_blocks_count_as_present(self, settings, tmp_path, write_file):
        write_file("pod.yaml", """\
apiVersion: v1
kind: Pod
spec:
  containers:
    - name: web
      image: nginx:1.25
      resources:
        limits: {}
      securityContext: {}
      livenessProbe: {}
    - name: sidecar
      image: envoy:1.29
      resources:
        limits: "500m"
      securityContext: true
      livenessProbe:
""")
        results = run(settings, tmp_path)
        assert [r.message for r in results] == [
            "Container 'sidecar' has no resource limits",
            "Container 'sidecar' has no securityContext",
            "Container 'sidecar' has no livenessProbe",
        ]


class TestDockerfiles:

    def test_missing_user_and_healthcheck(self, settings, tmp_path, write_file):
        write_file("Dockerfile", DOCKERFILE_NO_USER)
        assert pairs(run(settings, tmp_path)) == [
            ("FILE-DOCKER-003", Severity.HIGH),
            ("FILE-DOCKER-004", Severity.MEDIUM),
        ]

    def test_line_rules_then_file_rules(self, settings, tmp_path, write_file):
        write_file("Dockerfile.prod", """\
# ADD ./commented /nowhere
FROM python
ADD . /app
ADD https://example.com/tool.tar.gz /tmp/
RUN curl -o /tmp/x https://example.com/x
RUN wget https://example.com/y && tar xf y && rm y
USER app
HEALTHCHECK CMD curl -f http://localhost/ && rm -f /tmp/hc
""")
        assert [r.rule_id for r in run(settings, tmp_path)] == [
            "FILE-DOCKER-001",
            "FILE-DOCKER-002",
            "FILE-DOCKER-005",
        ]

    def test_last_user_root_counts_as_missing(self, settings, tmp_path, write_file):
        write_file("Dockerfile", """\
FROM alpine:3.19
USER app
USER root
HEALTHCHECK NONE
""")
        assert [r.rule_id for r in run(settings, tmp_path)] == ["FILE-DOCKER-003", "FILE-DOCKER-004"]

    def test_scratch_and_stage_aliases_are_exempt(self, settings, tmp_path, write_file):
        write_file("Dockerfile", """\
FROM --platform=linux/amd64 golang:1.22 AS build
RUN go build -o /out/app .
FROM build AS test
FROM scratch
COPY --from=build /out/app /app
USER 65532
HEALTHCHECK CMD ["/app", "health"]
""")
        assert run(settings, tmp_path) == []


class TestCompose:

    def test_insecure_service(self, settings, tmp_path, write_file):
        write_file("docker-compose.yml", COMPOSE_INSECURE)
        results = run(settings, tmp_path)

        assert pairs(results) == [
            ("FILE-COMPOSE-001", Severity.CRITICAL),
            ("FILE-COMPOSE-002", Severity.HIGH),
            ("FILE-COMPOSE-003", Severity.LOW),
            ("FILE-COMPOSE-004", Severity.MEDIUM),
        ]
        assert results[0].message == "Service 'cache' is privileged"

    def test_services_in_declaration_order(self, settings, tmp_path, write_file):
        write_file("compose.yaml", """\
services:
  zeta:
    image: zeta:1.0
  alpha:
    build: .
    deploy:
      replicas: 2
  mid:
    image: mid
    restart: always
""")
        results = run(settings, tmp_path)
        assert [r.message for r in results] == [
            "Service 'zeta' has no restart policy",
            "Service 'mid' uses latest or no tag",
        ]

    def test_null_restart_counts_as_missing(self, settings, tmp_path, write_file):
        write_file("docker-compose.yml", """\
services:
  web:
    image: web:2.0
    restart:
  worker:
    image: worker:2.0
    deploy: {}
""")
        results = run(settings, tmp_path)
        assert [r.message for r in results] == ["Service 'web' has no restart policy"]

    def test_unconstructible_value_is_skipped(self, settings, tmp_path, write_file):
        write_file("docker-compose.yml", COMPOSE_INSECURE + "x-built: 2024-02-30\n")
        write_file("Dockerfile", DOCKERFILE_NO_USER)
        results = run(settings, tmp_path)

        assert [r.rule_id for r in results] == ["FILE-DOCKER-003", "FILE-DOCKER-004"]


class TestTraversal:

    def test_lexical_order_and_excluded_dirs(self, settings, tmp_path, write_file):
        write_file("b/Dockerfile", DOCKERFILE_NO_USER)
        write_file("a/Dockerfile", DOCKERFILE_NO_USER)
        write_file("node_modules/pkg/Dockerfile", DOCKERFILE_NO_USER)
        write_file(".git/Dockerfile", DOCKERFILE_NO_USER)

        results = run(settings, tmp_path)
        resources = [r.resource for r in results]
        assert resources == [
            str(tmp_path / "a" / "Dockerfile"),
            str(tmp_path / "a" / "Dockerfile"),
            str(tmp_path / "b" / "Dockerfile"),
            str(tmp_path / "b" / "Dockerfile"),
        ]

    def test_missing_root_yields_nothing(self, settings, tmp_path):
        assert run(settings, tmp_path / "does-not-exist") == []

    def test_single_file_path(self, settings, write_file):
        path = write_file("docker-compose.yml", COMPOSE_INSECURE)
        assert len(run(settings, path)) == 4

    def test_files_are_not_modified(self, settings, tmp_path, write_file):
        path = write_file("Dockerfile", DOCKERFILE_NO_USER)
        before = path.stat().st_mtime_ns
        run(settings, tmp_path)
        assert path.read_text(encoding="utf-8") == DOCKERFILE_NO_USER
        assert path.stat().st_mtime_ns == before
