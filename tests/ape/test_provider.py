import threading

import pytest
from ape import networks
from ape.utils import ZERO_ADDRESS

from proxy_deployment.chain import wait_for_receipt
from proxy_deployment.config import DeploymentConfig
from proxy_deployment.constants import DEFAULT_CONTRACT_TYPES, IMPLEMENTATION, INITIALIZE_SIGNATURE
from proxy_deployment.exceptions import DeploymentAborted, DeploymentCancelled
from proxy_deployment.fees import FeeEstimator
from proxy_deployment.ledger import DeploymentLedger
from proxy_deployment.orchestrator import Orchestrator
from proxy_deployment.provider import ApeChainClient, get_contract_container

IMPLEMENTATION_TYPE = "FundraisingMock"


@pytest.fixture()
def deployer(accounts):
    return accounts[0]


@pytest.fixture()
def owner(accounts):
    return accounts[1]


@pytest.fixture()
def admin(accounts):
    return accounts[2]


@pytest.fixture()
def ape_client(deployer):
    return ApeChainClient(account=deployer, autosign=True, timeout=30)


@pytest.fixture()
def fee_bid(ape_client):
    return FeeEstimator(ape_client).estimate_fee_bid(ape_client.network)


@pytest.fixture()
def implementation(ape_client, fee_bid):
    pending = ape_client.deploy(IMPLEMENTATION_TYPE, [], fee_bid)
    receipt = wait_for_receipt(pending)
    return receipt.contract_address


def test_network_identifier(ape_client):
    network = networks.provider.network
    assert ape_client.network == f"{network.ecosystem.name}:{network.name}"
    assert ape_client.network == "ethereum:local"


def test_current_fee_baseline(ape_client):
    baseline = ape_client.current_fee_baseline(ape_client.network)
    assert isinstance(baseline, int)
    assert baseline == networks.provider.priority_fee


def test_fee_baseline_for_another_network(ape_client):
    with pytest.raises(ValueError, match="Connected to ethereum:local"):
        ape_client.current_fee_baseline("ethereum:sepolia")


def test_constructor_abi_types(ape_client):
    assert ape_client.constructor_abi_types(IMPLEMENTATION_TYPE) == []
    assert ape_client.constructor_abi_types("TransparentUpgradeableProxy") == [
        "address",
        "address",
        "bytes",
    ]


def test_deploy_returns_contract_address(ape_client, deployer, fee_bid):
    nonce = deployer.nonce
    pending = ape_client.deploy("ProxyAdmin", [], fee_bid)
    receipt = wait_for_receipt(pending, cancellation=threading.Event())

    assert receipt.txn_hash == pending.txn_hash
    assert receipt.block_number > 0
    assert receipt.contract_address
    assert deployer.nonce == nonce + 1
    proxy_admin = get_contract_container("ProxyAdmin").at(receipt.contract_address)
    assert proxy_admin.owner() == deployer.address


def test_call_initializes(ape_client, project, implementation, owner, admin, fee_bid):
    pending = ape_client.call(
        implementation, INITIALIZE_SIGNATURE, [owner.address, admin.address], fee_bid
    )
    receipt = wait_for_receipt(pending)

    assert receipt.contract_address is None
    assert receipt.txn_hash == pending.txn_hash
    contract = project.FundraisingMock.at(implementation)
    assert contract.owner() == owner.address
    assert contract.admin() == admin.address


def test_cancellation_at_deploy_prompt_sends_nothing(deployer, fee_bid, monkeypatch):
    cancellation = threading.Event()
    client = ApeChainClient(account=deployer, autosign=False, cancellation=cancellation)
    monkeypatch.setattr(
        "proxy_deployment.provider._confirm_resolution",
        lambda resolved_params, contract_name: cancellation.set(),
    )
    nonce = deployer.nonce

    with pytest.raises(DeploymentCancelled, match="before submission"):
        client.deploy("ProxyAdmin", [], fee_bid)
    assert deployer.nonce == nonce


def test_cancellation_at_call_prompt_sends_nothing(
    deployer, project, implementation, owner, admin, fee_bid, monkeypatch
):
    cancellation = threading.Event()
    client = ApeChainClient(account=deployer, autosign=False, cancellation=cancellation)
    monkeypatch.setattr("proxy_deployment.provider._continue", cancellation.set)
    nonce = deployer.nonce

    with pytest.raises(DeploymentCancelled):
        client.call(implementation, INITIALIZE_SIGNATURE, [owner.address, admin.address], fee_bid)
    assert deployer.nonce == nonce
    assert project.FundraisingMock.at(implementation).owner() == ZERO_ADDRESS


def test_declined_deploy_prompt_sends_nothing(deployer, fee_bid, monkeypatch):
    client = ApeChainClient(account=deployer, autosign=False)
    monkeypatch.setattr("builtins.input", lambda prompt: "n")
    nonce = deployer.nonce

    with pytest.raises(DeploymentAborted):
        client.deploy("ProxyAdmin", [], fee_bid)
    assert deployer.nonce == nonce


def test_orchestrated_deployment(ape_client, project, deployer, owner, admin, tmp_path):
    contract_types = dict(DEFAULT_CONTRACT_TYPES)
    contract_types[IMPLEMENTATION] = IMPLEMENTATION_TYPE
    config = DeploymentConfig.default(
        network=ape_client.network,
        contract_types=contract_types,
        owner=owner.address,
        admin=admin.address,
        ledger_filepath=tmp_path / "ledger.json",
    )

    outcome = Orchestrator(ape_client, DeploymentLedger(config.ledger_filepath), config).run()

    fundraising = project.FundraisingMock.at(outcome.proxy.address)
    assert fundraising.owner() == owner.address
    assert fundraising.admin() == admin.address
    assert outcome.proxy.deployer == deployer.address

    nonce = deployer.nonce
    rerun = Orchestrator(ape_client, DeploymentLedger(config.ledger_filepath), config).run()
    assert deployer.nonce == nonce
    assert rerun.proxy.address == outcome.proxy.address
