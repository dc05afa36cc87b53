"""줄 단위 stdio 전송이에요.

한 줄이 JSON-RPC 봉투 하나예요. 요청을 끝까지 읽고, 디스패치하고, 응답을 끝까지 쓴 뒤에
다음 줄을 읽어요. 그래서 응답 순서는 항상 요청 순서와 같아요.
stdout은 프로토콜 프레임 전용이라 로그는 stderr로만 나가야 해요.
"""

from __future__ import annotations

import asyncio
import sys
from typing import Protocol

from commerce_gateway.app.dispatcher import JsonRpcDispatcher
from libs.common.logging import get_logger

logger = get_logger("commerce_gateway.stdio")


class LineReader(Protocol):
    async def readline(self) -> bytes: ...


class FrameWriter(Protocol):
    def write(self, data: bytes) -> None: ...
    async def drain(self) -> None: ...


class StdioTransport:
    def __init__(self, dispatcher: JsonRpcDispatcher) -> None:
        self._dispatcher = dispatcher

    async def run(self, reader: LineReader, writer: FrameWriter) -> int:
        """EOF까지 요청을 처리하고 처리한 메시지 수를 돌려줘요."""
        handled = 0
        logger.info("stdio_transport_started")
        while True:
            try:
                line = await reader.readline()
            except ValueError as exc:
                # 한도를 넘은 줄은 버리고 파싱 오류로 응답해요.
                logger.warning("stdio_frame_too_large", error=str(exc))
                handled += 1
                response: bytes | None = self._dispatcher.parse_error()
            else:
                if not line:
                    break

                frame = line.rstrip(b"\r\n")
                if not frame.strip():
                    continue

                handled += 1
                response = await self._dispatcher.handle(frame)

            if response is None:
                continue

            try:
                writer.write(response + b"\n")
                await writer.drain()
            except (BrokenPipeError, ConnectionResetError) as exc:
                logger.warning("stdio_write_failed", error=str(exc))
                break

        logger.info("stdio_transport_stopped", handled=handled)
        return handled


class _StdoutWriter:
    def __init__(self) -> None:
        self._stream = sys.stdout.buffer

    def write(self, data: bytes) -> None:
        self._stream.write(data)

    async def drain(self) -> None:
        self._stream.flush()


async def open_stdin_reader() -> asyncio.StreamReader:
    # 줄 하나가 커질 수 있어서 기본 64KiB 제한을 늘려요.
    reader = asyncio.StreamReader(limit=16 * 1024 * 1024)
    loop = asyncio.get_running_loop()
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
    return reader


async def serve_stdio(dispatcher: JsonRpcDispatcher) -> int:
    reader = await open_stdin_reader()
    return await StdioTransport(dispatcher).run(reader, _StdoutWriter())
