import pytest
from unittest.mock import MagicMock

from widget_bridge.exceptions import TransportError
from widget_bridge.transport import LocalComm, LocalCommManager, LocalKernel, make_msg


def _open_msg(comm_id, target_name="t", data=None):
    return make_msg("comm_open", {"comm_id": comm_id, "target_name": target_name, "data": data or {}})


def test_make_msg():
    msg = make_msg("comm_msg", {"x": 1}, parent_msg_id="p1")

    assert msg["header"]["msg_type"] == "comm_msg"
    assert msg["header"]["msg_id"]
    assert msg["parent_header"] == {"msg_id": "p1"}
    assert make_msg("comm_msg", {})["parent_header"] == {}


def test_kernel_records_callbacks():
    kernel = LocalKernel()
    callbacks = {"iopub": {"output": print}}

    msg_id = kernel.send_shell_message("comm_msg", {"data": {}}, callbacks=callbacks)
    other_id = kernel.send_shell_message("comm_msg", {"data": {}})

    assert kernel.get_callbacks_for_msg(msg_id) is callbacks
    assert kernel.get_callbacks_for_msg(other_id) is None
    kernel.clear_callbacks_for_msg(msg_id)
    assert kernel.get_callbacks_for_msg(msg_id) is None


def test_new_comm_sends_open():
    manager = LocalCommManager()

    comm = manager.new_comm("t", {"target_name": "backend"})

    assert manager.get_comm(comm.comm_id) is comm
    [opened] = manager.kernel.messages_of_type("comm_open")
    assert opened["content"] == {"comm_id": comm.comm_id, "target_name": "t", "data": {"target_name": "backend"}}


def test_send_on_closed_comm_fails():
    manager = LocalCommManager()
    comm = manager.new_comm("t")
    comm.close()

    with pytest.raises(TransportError):
        comm.send({"x": 1})
    assert comm.close() is None


def test_detached_comm_cannot_send():
    with pytest.raises(TransportError):
        LocalComm("t").send({})


def test_new_comm_without_kernel_is_not_registered():
    manager = LocalCommManager()
    manager.kernel = None

    with pytest.raises(TransportError):
        manager.new_comm("t", {})
    assert manager.comms == {}


@pytest.mark.asyncio
async def test_comm_open_dispatches_to_target():
    manager = LocalCommManager()
    handler = MagicMock(return_value="created")
    manager.register_target("t", handler)

    result = await manager.comm_open(_open_msg("c1"))

    assert result == "created"
    comm, msg = handler.call_args.args
    assert comm.comm_id == "c1"
    assert msg["content"]["comm_id"] == "c1"


@pytest.mark.asyncio
async def test_comm_open_awaits_async_target():
    manager = LocalCommManager()

    async def handler(comm, msg):
        return comm.comm_id

    manager.register_target("t", handler)

    assert await manager.comm_open(_open_msg("c2")) == "c2"


@pytest.mark.asyncio
async def test_comm_open_unknown_target_closes_comm():
    manager = LocalCommManager()

    assert await manager.comm_open(_open_msg("c3", target_name="nobody")) is None
    assert manager.get_comm("c3") is None
    assert len(manager.kernel.messages_of_type("comm_close")) == 1


@pytest.mark.asyncio
async def test_comm_open_handler_failure_closes_comm():
    manager = LocalCommManager()
    manager.register_target("t", MagicMock(side_effect=RuntimeError("boom")))

    assert await manager.comm_open(_open_msg("c4")) is None
    assert manager.get_comm("c4") is None


def test_unregister_target_only_if_current():
    manager = LocalCommManager()
    first, second = MagicMock(), MagicMock()
    manager.register_target("t", first)
    manager.register_target("t", second)

    manager.unregister_target("t", first)
    assert manager.targets["t"] is second

    manager.unregister_target("t")
    manager.unregister_target("t")
    assert "t" not in manager.targets


@pytest.mark.asyncio
async def test_msg_and_close_routing():
    manager = LocalCommManager()
    manager.register_target("t", MagicMock())
    await manager.comm_open(_open_msg("c5"))
    comm = manager.get_comm("c5")
    on_msg, on_close = MagicMock(), MagicMock()
    comm.on_msg(on_msg)
    comm.on_close(on_close)

    data_msg = make_msg("comm_msg", {"comm_id": "c5", "data": {"x": 1}})
    manager.comm_msg(data_msg)
    manager.comm_msg(make_msg("comm_msg", {"comm_id": "unknown", "data": {}}))
    close_msg = make_msg("comm_close", {"comm_id": "c5", "data": {}})
    manager.comm_close(close_msg)
    manager.comm_close(close_msg)

    on_msg.assert_called_once_with(data_msg)
    on_close.assert_called_once_with(close_msg)
    assert comm.closed is True
    assert manager.get_comm("c5") is None


def test_failing_msg_listener_is_contained():
    manager = LocalCommManager()
    comm = manager.new_comm("t")
    after = MagicMock()
    comm.on_msg(MagicMock(side_effect=ValueError("bad")))
    comm.on_msg(after)

    comm.handle_msg({"content": {}})

    after.assert_called_once()
