import asyncio

import pytest

from fakes import FakeConnection, FakeStreamTransport, collect, wait_until
from twirp_client import (
    CallTarget,
    EmptyStreamError,
    InputStreamBrokenError,
    StreamChannel,
    StreamClosedError,
)

TARGET = CallTarget("pkg.Svc", "Stream")


async def open_channel(conn: FakeConnection) -> StreamChannel:
    return await StreamChannel.open(FakeStreamTransport(conn), "ws://localhost/pkg.Svc/Stream", TARGET)


@pytest.mark.asyncio
async def test_open_starts_receiving_immediately() -> None:
    conn = FakeConnection()
    conn.push(b"early")
    channel = await open_channel(conn)

    await wait_until(lambda: conn.iterating)
    assert await asyncio.wait_for(channel.first(), 1) == b"early"
    await channel.close()


@pytest.mark.asyncio
async def test_inbound_frames_keep_receipt_order() -> None:
    conn = FakeConnection()
    channel = await open_channel(conn)
    conn.push(b"1", b"2", b"3")
    conn.finish()

    assert await collect(channel) == [b"1", b"2", b"3"]
    # A finished channel stays finished
    assert await collect(channel) == []


@pytest.mark.asyncio
async def test_send_is_verbatim_binary() -> None:
    conn = FakeConnection()
    channel = await open_channel(conn)

    await channel.send(b"\x00\x01")
    await channel.send(bytearray(b"\x02"))
    await channel.send(memoryview(b"..\x03..")[2:3])

    assert conn.sent == [b"\x00\x01", b"\x02", b"\x03"]
    await channel.close()


@pytest.mark.asyncio
async def test_close_is_idempotent_and_terminates_once() -> None:
    conn = FakeConnection()
    channel = await open_channel(conn)
    consumer = asyncio.create_task(collect(channel))
    await asyncio.sleep(0)

    await channel.close()
    await channel.close()

    assert await consumer == []
    assert conn.closes == [(1000, "")]
    assert channel._queue.empty()
    assert channel.closed is True


@pytest.mark.asyncio
async def test_send_after_close_raises() -> None:
    conn = FakeConnection()
    channel = await open_channel(conn)
    await channel.close()

    with pytest.raises(StreamClosedError):
        await channel.send(b"late")
    assert conn.sent == []


@pytest.mark.asyncio
async def test_abnormal_peer_close_raises_to_consumer() -> None:
    conn = FakeConnection()
    channel = await open_channel(conn)
    conn.push(b"partial")
    conn.break_with(StreamClosedError("Stream closed with code 1011", code=1011, reason="oops"))

    received = []
    with pytest.raises(StreamClosedError) as info:
        async for payload in channel:
            received.append(payload)

    assert received == [b"partial"]
    assert info.value.code == 1011
    assert info.value.reason == "oops"
    await channel.close()


@pytest.mark.asyncio
async def test_transport_error_raises_to_consumer() -> None:
    conn = FakeConnection()
    channel = await open_channel(conn)
    conn.break_with(ConnectionResetError("reset by peer"))

    with pytest.raises(ConnectionResetError):
        await asyncio.wait_for(channel.first(), 1)
    await channel.close()


@pytest.mark.asyncio
async def test_fail_with_input_stream_code() -> None:
    conn = FakeConnection()
    channel = await open_channel(conn)

    await channel.fail(4001, "Input stream broken")
    await channel.fail(4001, "Input stream broken")

    with pytest.raises(InputStreamBrokenError):
        await channel.first()
    assert conn.closes == [(4001, "Input stream broken")]


@pytest.mark.asyncio
async def test_fail_with_other_code() -> None:
    conn = FakeConnection()
    channel = await open_channel(conn)

    await channel.fail(4000, "bad state")

    with pytest.raises(StreamClosedError) as info:
        await channel.first()
    assert not isinstance(info.value, InputStreamBrokenError)
    assert info.value.code == 4000


@pytest.mark.asyncio
async def test_first_raises_when_stream_ends_empty() -> None:
    conn = FakeConnection()
    channel = await open_channel(conn)
    conn.finish()

    with pytest.raises(EmptyStreamError):
        await asyncio.wait_for(channel.first(), 1)
    await channel.close()


@pytest.mark.asyncio
async def test_context_manager_closes() -> None:
    conn = FakeConnection()
    async with await open_channel(conn) as channel:
        await channel.send(b"x")
    assert channel.closed is True
    assert conn.closes == [(1000, "")]


@pytest.mark.asyncio
async def test_forward_only_once() -> None:
    conn = FakeConnection()
    channel = await open_channel(conn)
    channel.forward([b"a"])

    with pytest.raises(RuntimeError):
        channel.forward([b"b"])
    await channel.close()


@pytest.mark.asyncio
async def test_close_cancels_pending_forwarder() -> None:
    never = asyncio.Event()

    async def producer():
        yield b"a"
        await never.wait()
        yield b"b"

    conn = FakeConnection()
    channel = await open_channel(conn)
    task = channel.forward(producer())
    await wait_until(lambda: conn.sent == [b"a"])

    await channel.close()

    assert task.cancelled()
