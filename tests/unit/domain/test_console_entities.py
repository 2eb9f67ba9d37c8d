"""
Tests for console domain entities and value objects.
"""
from ldk_console.domain.entities import (
    ChainSourceConfig,
    ChainSourceForm,
    Forms,
    SpliceForm,
    StatusMessage,
)
from ldk_console.domain.value_objects import ActiveTab, ChainSourceType, OperationKey


class TestOperationKey:
    """Tests for OperationKey."""

    def test_closed_set(self):
        """There is one key per remote operation."""
        assert len(OperationKey) == 17

    def test_declaration_order_starts_with_overview(self):
        keys = list(OperationKey)
        assert keys[:4] == [
            OperationKey.NODE_INFO,
            OperationKey.BALANCES,
            OperationKey.CHANNELS,
            OperationKey.PAYMENTS,
        ]

    def test_display_names(self):
        assert OperationKey.BALANCES.display_name == "fetch balances"
        assert OperationKey.SPLICE_OUT.display_name == "splice out"
        assert all(key.display_name for key in OperationKey)


class TestStatusMessage:
    """Tests for StatusMessage."""

    def test_success(self):
        message = StatusMessage.success("Connected")
        assert message.text == "Connected"
        assert message.is_error is False
        assert message.timestamp is not None

    def test_error(self):
        assert StatusMessage.error("boom").is_error is True


class TestChainSourceConfig:
    """Tests for ChainSourceConfig."""

    def test_default_is_unconfigured(self):
        config = ChainSourceConfig()
        assert config.source_type == ChainSourceType.NONE
        assert config.is_configured is False

    def test_bitcoind(self):
        config = ChainSourceConfig.bitcoind("127.0.0.1:8332", "user", "pass")
        assert config.source_type == ChainSourceType.BITCOIND
        assert config.rpc_password == "pass"
        assert config.server_url == ""
        assert config.is_configured is True

    def test_url_sources(self):
        assert ChainSourceConfig.electrum("tcp://e:50001").source_type == ChainSourceType.ELECTRUM
        assert ChainSourceConfig.esplora("https://e/api").server_url == "https://e/api"

    def test_labels(self):
        assert ChainSourceType.BITCOIND.label == "Bitcoin Core RPC"
        assert ChainSourceType.NONE.label == "None"


class TestChainSourceForm:
    """Tests for the editable chain source."""

    def test_from_config(self):
        form = ChainSourceForm.from_config(ChainSourceConfig.bitcoind("127.0.0.1:8332", "u", "p"))

        assert form.source_type == ChainSourceType.BITCOIND
        assert (form.rpc_address, form.rpc_user, form.rpc_password) == ("127.0.0.1:8332", "u", "p")
        assert Forms().chain_source == ChainSourceForm()

    def test_to_config_drops_other_fields(self):
        """Only the fields of the selected type reach the config."""
        form = ChainSourceForm(
            source_type=ChainSourceType.ESPLORA,
            rpc_address="127.0.0.1:8332",
            server_url="https://esplora.example",
        )

        assert form.to_config() == ChainSourceConfig.esplora("https://esplora.example")

        form.source_type = ChainSourceType.BITCOIND
        assert form.to_config() == ChainSourceConfig.bitcoind("127.0.0.1:8332", "", "")

        form.source_type = ChainSourceType.NONE
        assert form.to_config() == ChainSourceConfig()


class TestForms:
    """Tests for the form container."""

    def test_forms_start_blank(self):
        forms = Forms()
        assert forms.open_channel.channel_amount_sats == ""
        assert forms.onchain_send.send_all is False
        assert forms.connect_peer.persist is False

    def test_splice_forms_are_independent(self):
        """Splice-in and splice-out keep separate input."""
        forms = Forms()
        forms.splice_in.splice_amount_sats = "1000"

        assert forms.splice_out == SpliceForm()
        assert forms.splice_in is not forms.splice_out


class TestActiveTab:
    """Tests for ActiveTab."""

    def test_tabs_and_labels(self):
        assert [tab.label for tab in ActiveTab] == [
            "Node Info", "Balances", "Channels", "Payment History", "Lightning", "On-chain",
        ]
