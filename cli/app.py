"""
cli/app.py - 메인 CLI 엔트리포인트

Click 기반의 CLI 애플리케이션 진입점입니다.

명령어 구조:
    rift init               # SSO 시작 URL / 리전 설정
    rift auth               # aws sso login 실행
    rift sync [--dry-run]   # 탐색 + AWS config / kubeconfig 동기화
    rift list               # 동기화된 클러스터 목록
    rift use <filter>       # kube context 검색 후 전환

공통 옵션:
    --config PATH   설정 파일 (기본: ~/.config/rift/config.yaml)
    --state PATH    상태 파일 (기본: ~/.config/rift/state.json)
    --debug         DEBUG 로그 출력

Usage:
    $ rift sync --dry-run
    $ python -m cli.app list
"""

from __future__ import annotations

import logging
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path

import click
import questionary

from cli.login import sso_login
from cli.ui import (
    console,
    match_contexts,
    pick_unambiguous,
    print_error,
    print_info,
    print_success,
    print_table,
    print_warning,
    setup_logging,
)
from rift import __version__
from rift.auth.token_cache import validate_sso_login
from rift.config import (
    Config,
    default_aws_config_path,
    default_config_path,
    default_kube_config_path,
    default_state_path,
    load_config,
    resolve_path,
    save_config,
)
from rift.exceptions import (
    ConfigError,
    RiftError,
    SSONotLoggedInError,
    StateNotFoundError,
    format_error_for_user,
)
from rift.state import ClusterRecord, load_state
from rift.sync import run_sync

logger = logging.getLogger(__name__)

DEFAULT_SSO_REGION = "us-east-1"
MAX_SELECT_OPTIONS = 12


@dataclass
class AppContext:
    """명령 간 공유되는 경로/옵션"""

    config_path: Path
    state_path: Path
    debug: bool = False

    def load_config(self) -> Config:
        return load_config(self.config_path)


def _fail(error: Exception) -> None:
    if isinstance(error, RiftError):
        logger.debug(f"오류 상세: {error.to_dict()}")
    print_error(format_error_for_user(error))
    raise SystemExit(1)


def _account_label(name: str, account_id: str) -> str:
    if not name.strip():
        return account_id
    if not account_id.strip():
        return name
    return f"{name} ({account_id})"


@click.group()
@click.version_option(__version__, prog_name="rift")
@click.option("--config", "config_path", default=None, help="설정 파일 경로 (config.yaml)")
@click.option("--state", "state_path", default=None, help="상태 파일 경로 (state.json)")
@click.option("--debug", is_flag=True, help="DEBUG 로그 출력")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, state_path: str | None, debug: bool) -> None:
    """AWS SSO 역할과 EKS 클러스터를 AWS config / kubeconfig에 동기화합니다."""
    setup_logging(debug)
    try:
        ctx.obj = AppContext(
            config_path=resolve_path(config_path) if config_path else default_config_path(),
            state_path=resolve_path(state_path) if state_path else default_state_path(),
            debug=debug,
        )
    except ConfigError as e:
        _fail(e)


# =============================================================================
# init / auth
# =============================================================================


@cli.command()
@click.pass_obj
def init(app: AppContext) -> None:
    """SSO 시작 URL / 리전을 입력받아 설정 파일을 만듭니다."""
    try:
        config = app.load_config()
    except ConfigError:
        config = Config.default()
    if not config.sso_region:
        config.sso_region = DEFAULT_SSO_REGION

    start_url = questionary.text("SSO start URL:", default=config.sso_start_url).ask()
    sso_region = questionary.text("SSO region:", default=config.sso_region).ask() if start_url is not None else None
    if start_url is None or sso_region is None:
        print_warning("사용자가 취소했습니다.")
        return

    config.sso_start_url = start_url
    config.sso_region = sso_region
    try:
        path = save_config(app.config_path, config)
    except ConfigError as e:
        _fail(e)
        return
    print_success(f"설정 저장: {path}")

    try:
        validate_sso_login(config)
    except SSONotLoggedInError:
        print_warning("SSO 토큰이 없거나 만료되었습니다. 다음을 실행하세요: rift auth")
        return
    except RiftError as e:
        _fail(e)
    print_success("SSO 토큰 확인 완료. 초기화가 끝났습니다.")


@cli.command()
@click.option("--no-browser", is_flag=True, help="브라우저를 열지 않고 디바이스 코드 방식 사용")
@click.pass_obj
def auth(app: AppContext, no_browser: bool) -> None:
    """AWS IAM Identity Center(SSO) 로그인을 실행합니다."""
    try:
        config = app.load_config()
        print_info("AWS SSO 로그인을 시작합니다. 요청 시 botocore-client-rift 앱을 승인하세요.")
        result = sso_login(default_aws_config_path(), config, no_browser=no_browser)
    except RiftError as e:
        output = e.details.get("output") if e.details else None
        if output:
            click.echo(output, err=True)
        _fail(e)
        return

    if result.output.strip():
        click.echo(result.output.rstrip(), err=True)
    if result.legacy:
        print_warning("구버전 AWS CLI 로그인 방식(profile rift-auth)을 사용했습니다.")
    print_success("SSO 로그인 완료. 다음을 실행하세요: rift sync")


# =============================================================================
# sync
# =============================================================================


@cli.command()
@click.option("--dry-run", is_flag=True, help="파일을 쓰지 않고 변경 사항만 확인")
@click.pass_obj
def sync(app: AppContext, dry_run: bool) -> None:
    """SSO/EKS를 탐색하고 AWS config / kubeconfig를 동기화합니다."""
    cancel_event = threading.Event()
    try:
        config = app.load_config()
        with console.status("AWS SSO / EKS 탐색 중..."):
            report = run_sync(
                config,
                state_path=app.state_path,
                aws_config_path=default_aws_config_path(),
                kube_config_path=default_kube_config_path(),
                dry_run=dry_run,
                cancel_event=cancel_event,
            )
    except KeyboardInterrupt:
        cancel_event.set()
        print_warning("사용자가 취소했습니다.")
        raise SystemExit(130) from None
    except RiftError as e:
        _fail(e)
        return

    if dry_run:
        print_info("Dry run 완료 (파일을 쓰지 않았습니다)")

    rows = [
        ["역할", len(report.state.roles)],
        ["클러스터", len(report.state.clusters)],
    ]
    if report.namespaces.enabled:
        ns = report.namespaces
        rows.append(["네임스페이스", f"tried={ns.clusters_tried} updated={ns.clusters_updated} errors={ns.errors}"])
    rows.append(["AWS 프로파일", str(report.aws)])
    rows.append(["Kube context", str(report.kube)])
    print_table("rift sync", ["항목", "결과"], rows)

    if not dry_run:
        print_success(f"상태 저장: {app.state_path}")


# =============================================================================
# list / use
# =============================================================================


def _load_clusters(app: AppContext) -> list[ClusterRecord]:
    try:
        state = load_state(app.state_path)
    except StateNotFoundError:
        print_error("상태 파일이 없습니다. 다음을 실행하세요: rift sync")
        raise SystemExit(1) from None
    except RiftError as e:
        _fail(e)
        return []
    return state.clusters


@cli.command(name="list")
@click.pass_obj
def list_contexts(app: AppContext) -> None:
    """동기화된 클러스터 context 목록을 표시합니다."""
    clusters = _load_clusters(app)
    if not clusters:
        print_warning("발견된 클러스터가 없습니다. 다음을 실행하세요: rift sync")
        return

    rows = [
        [
            c.env,
            _account_label(c.account_name, c.account_id),
            c.role_name,
            c.region,
            c.cluster_name,
            c.aws_profile,
            c.kube_context,
        ]
        for c in clusters
    ]
    print_table(
        "rift contexts",
        ["Env", "Account", "Role", "Region", "Cluster", "AWS Profile", "Kube Context"],
        rows,
    )


def switch_context(context: str) -> int:
    """kubectl config use-context 실행"""
    try:
        completed = subprocess.run(["kubectl", "config", "use-context", context], check=False)  # noqa: S603, S607
    except FileNotFoundError:
        print_error("PATH에서 kubectl을 찾을 수 없습니다")
        return 1
    return completed.returncode


@cli.command()
@click.argument("filter_text", metavar="FILTER")
@click.pass_obj
def use(app: AppContext, filter_text: str) -> None:
    """FILTER와 일치하는 kube context로 전환합니다."""
    clusters = _load_clusters(app)
    if not clusters:
        print_error("사용할 수 있는 context가 없습니다. 다음을 실행하세요: rift sync")
        raise SystemExit(1)

    matches = match_contexts(filter_text, clusters)
    if not matches:
        print_error(f"일치하는 context가 없습니다: {filter_text!r}")
        raise SystemExit(1)

    selected = pick_unambiguous(filter_text, matches)
    if selected is None:
        shown = matches[:MAX_SELECT_OPTIONS]
        choices = [
            questionary.Choice(
                f"{m.context}  [{m.cluster.env} | {m.cluster.account_name} | {m.cluster.role_name} | {m.cluster.cluster_name}]",
                value=m,
            )
            for m in shown
        ]
        if len(matches) > len(shown):
            print_info(f"... 외 {len(matches) - len(shown)}건 (검색어를 더 구체적으로 입력하세요)")
        selected = questionary.select(f"{filter_text!r}와 일치하는 context:", choices=choices).ask()
        if selected is None:
            print_warning("선택을 취소했습니다.")
            return

    code = switch_context(selected.context)
    if code != 0:
        raise SystemExit(code)
    print_success(f"context 전환: {selected.context}")


if __name__ == "__main__":
    cli()
