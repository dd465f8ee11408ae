import json
import queue
from flask import Response, stream_with_context
from contract_tracker.backend import get_backend
from contract_tracker.extensions import db

KEEPALIVE_SECONDS = 25


def _sse(payload):
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


def live_snapshot_response(collection, load_snapshot):
    """
    Server-Sent Events stream of ``load_snapshot()``: one frame on connect,
    one more after every change published on ``collection``.

    The subscription lives exactly as long as the generator; when the client
    goes away the generator is closed and the ``with`` block releases it.
    """
    feed = get_backend().feed

    def generate():
        changes = queue.Queue()
        with feed.subscribe(collection, changes.put):
            yield _sse(load_snapshot())
            while True:
                try:
                    changes.get(timeout=KEEPALIVE_SECONDS)
                except queue.Empty:
                    yield ': keep-alive\n\n'
                    continue
                # End the read transaction so the reload sees the new commit
                db.session.rollback()
                yield _sse(load_snapshot())

    return Response(stream_with_context(generate()), mimetype='text/event-stream',
                    headers={'Cache-Control': 'no-cache', 'X-Accel-Buffering': 'no'})
