import signal
import threading

from conftest import (
    DEPLOYER,
    IMPLEMENTATION_ADDRESS,
    PROXY_ADDRESS,
    PROXY_ADMIN_ADDRESS,
    FakeChainClient,
)

from proxy_deployment.ledger import DeploymentLedger
from proxy_deployment.orchestrator import Orchestrator
from proxy_deployment.runner import (
    EXIT_FAILURE,
    EXIT_SUCCESS,
    install_cancellation_handler,
    print_deployment_info,
    run_deployment,
)


def test_successful_run_reports_addresses(client, ledger, config, capsys):
    exit_code = run_deployment(Orchestrator(client, ledger, config))

    output = capsys.readouterr().out
    assert exit_code == EXIT_SUCCESS
    assert f"Implementation (Fundraising): {IMPLEMENTATION_ADDRESS}" in output
    assert f"ProxyAdmin (ProxyAdmin): {PROXY_ADMIN_ADDRESS}" in output
    assert f"Proxy (TransparentUpgradeableProxy): {PROXY_ADDRESS}" in output
    assert "Initialization: " in output
    assert "fee bid 13" in output


def test_failed_run_reports_stage_and_cause(client, ledger, config, capsys):
    client.fail_deploy["ProxyAdmin"] = RuntimeError("nonce too low")

    exit_code = run_deployment(Orchestrator(client, ledger, config))

    output = capsys.readouterr().out
    assert exit_code == EXIT_FAILURE
    assert "Deployment failed at DeployingProxyAdmin" in output
    assert "nonce too low" in output


def test_rerun_performs_no_submissions(client, ledger_filepath, config):
    assert run_deployment(Orchestrator(client, DeploymentLedger(ledger_filepath), config)) == 0

    rerun_client = FakeChainClient()
    rerun = Orchestrator(rerun_client, DeploymentLedger(ledger_filepath), config)
    assert run_deployment(rerun) == EXIT_SUCCESS
    assert rerun_client.submissions == 0


def test_cancellation_handler_sets_event():
    cancellation = threading.Event()
    previous = signal.getsignal(signal.SIGTERM)
    try:
        install_cancellation_handler(cancellation, signals=(signal.SIGTERM,))
        signal.getsignal(signal.SIGTERM)(signal.SIGTERM, None)
    finally:
        signal.signal(signal.SIGTERM, previous)
    assert cancellation.is_set()


def test_deployment_info_names_the_deployment(config, capsys):
    print_deployment_info(DEPLOYER, config._replace(name="fundraising-sepolia"))

    output = capsys.readouterr().out.splitlines()
    assert output[0] == "Deployment: fundraising-sepolia"
    assert f"Account: {DEPLOYER}" in output
    assert "Implementation: Fundraising" in output
    assert "Owner: $deployer" in output
