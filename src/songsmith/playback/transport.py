"""
Real-time transport with lookahead scheduling.

Notes are not triggered when they fall due. A polling loop wakes every
``interval`` seconds and hands the voice bank every note starting within the
next ``lookahead`` seconds, stamped with its exact start time on the bank's
sample clock. Onsets therefore land on the right sample however late the
polling thread wakes up.

Clips are synthesised well before dispatch: ``play()`` renders the notes of
the first ``render_ahead`` seconds before anchoring the session, and a render
thread keeps that far ahead of the clock afterwards. The polling loop only
passes finished clips to the bank and never synthesises while holding the
transport lock.
"""

import logging
import threading
from enum import Enum
from typing import List, Optional

import numpy as np

from ..audio.recipes import render_note
from ..audio.voices import VoiceBank
from ..composition.model import Composition
from ..composition.sequencer import ScheduledNote, build_schedule, schedule_length

logger = logging.getLogger(__name__)


class TransportState(Enum):
    STOPPED = "stopped"
    PLAYING = "playing"


class Transport:
    """
    Walks a composition's schedule against the voice bank's clock.

    Args:
        voices: Voice bank that renders the notes and provides the clock
        lookahead: Seconds ahead of the clock scanned on every tick
        interval: Seconds between ticks of the polling loop
        start_delay: Offset between play() and the first beat
        render_ahead: Seconds of the schedule kept rendered ahead of the clock
        threaded: Run the polling and render loops on daemon threads; when
            False the caller drives both by calling tick()
    """

    def __init__(self, voices: VoiceBank, lookahead: float = 0.1, interval: float = 0.025,
                 start_delay: float = 0.05, render_ahead: float = 2.0, threaded: bool = True):
        if interval <= 0:
            raise ValueError(f"Interval must be positive, got {interval}")
        if lookahead < interval:
            raise ValueError("Lookahead must be at least one polling interval")
        if render_ahead < lookahead:
            raise ValueError("render_ahead must cover at least the lookahead")
        self.voices = voices
        self.lookahead = lookahead
        self.interval = interval
        self.start_delay = start_delay
        self.render_ahead = render_ahead
        self.threaded = threaded

        self._state = TransportState.STOPPED
        self._composition: Optional[Composition] = None
        self._schedule: List[ScheduledNote] = []
        self._clips: List[Optional[np.ndarray]] = []
        self._rendered = 0          # notes with a finished clip, in schedule order
        self._next = 0              # index of the next undispatched note
        self._origin = 0.0          # clock time of the top of the piece
        self._end = 0.0             # clock time after which the session is over
        self._session = 0
        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # ---------- State ----------
    @property
    def state(self) -> TransportState:
        return self._state

    @property
    def is_playing(self) -> bool:
        return self._state is TransportState.PLAYING

    @property
    def composition(self) -> Optional[Composition]:
        return self._composition

    @property
    def pending(self) -> int:
        """Notes of the current session not yet handed to the voice bank."""
        return len(self._schedule) - self._next

    @property
    def position(self) -> float:
        """Seconds since the top of the piece, 0.0 when stopped."""
        if not self.is_playing:
            return 0.0
        return max(0.0, self.voices.current_time - self._origin)

    # ---------- Transitions ----------
    def load(self, composition: Composition) -> None:
        """Replace the active composition, stopping any session in progress."""
        if not isinstance(composition, Composition):
            raise TypeError(f"Expected a Composition, got {type(composition).__name__}")
        if self.is_playing:
            self.stop()
        with self._lock:
            self._session += 1
            self._composition = composition
            self._schedule = []
            self._clips = []
            self._rendered = 0
            self._next = 0
        logger.info("Loaded %r (%d tracks, %d notes, %.1f BPM)", composition.title,
                    len(composition.tracks), composition.note_count, composition.tempo)

    def play(self) -> bool:
        """
        Start playback from the top.

        Returns False, doing nothing, when no composition is loaded or when
        stop() or load() interrupts the start. A session already playing is
        stopped first.
        """
        if self.is_playing:
            self.stop()
        with self._lock:
            if self._composition is None:
                logger.info("play() ignored: no composition loaded")
                return False
            self._session += 1
            session = self._session
            self._schedule = build_schedule(self._composition)
            self._clips = [None] * len(self._schedule)
            self._rendered = 0
            self._next = 0
            self._stop_event = threading.Event()
            stop_event = self._stop_event

        primed = self._render_until(session, self.render_ahead)

        with self._lock:
            if session != self._session:
                logger.info("play() interrupted while rendering")
                return False
            self._origin = self.voices.current_time + self.start_delay
            self._end = self._origin + schedule_length(self._schedule)
            self._state = TransportState.PLAYING
            logger.info("Playing %d notes, %.2fs (%d rendered ahead)",
                        len(self._schedule), self._end - self._origin, primed)

        self.tick()
        if not self.threaded:
            return True
        with self._lock:
            if session == self._session and self.is_playing:
                self._thread = threading.Thread(
                    target=self._run, args=(session, stop_event),
                    name="songsmith-transport", daemon=True,
                )
                self._thread.start()
                if self._rendered < len(self._schedule):
                    threading.Thread(
                        target=self._render_loop, args=(session, stop_event),
                        name="songsmith-render", daemon=True,
                    ).start()
        return True

    def stop(self) -> None:
        """Halt the loops, release every voice and discard the remaining schedule."""
        with self._lock:
            thread = self._thread
            self._thread = None
            self._session += 1
            self._stop_event.set()
            was_playing = self.is_playing
            self._state = TransportState.STOPPED
            self.voices.release_all()
            self._next = len(self._schedule)
            self._clips = []
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=max(1.0, 4 * self.interval))
        if was_playing:
            logger.info("Stopped")

    def toggle(self) -> bool:
        """Play when stopped, stop when playing; returns whether it is now playing."""
        if self.is_playing:
            self.stop()
            return False
        return self.play()

    # ---------- Rendering ----------
    def _render_until(self, session: int, limit: float) -> int:
        """
        Render clips in schedule order for notes starting by ``limit`` seconds.

        Synthesis runs without the lock; a clip finished after the session
        changed is discarded. Returns the number of clips rendered.
        """
        rendered = 0
        while True:
            with self._lock:
                if session != self._session or self._rendered >= len(self._schedule):
                    return rendered
                index = self._rendered
                note = self._schedule[index]
                if note.start > limit:
                    return rendered
            clip = render_note(note.instrument, note.pitch, note.velocity, note.duration,
                               self.voices.sample_rate)
            with self._lock:
                if session != self._session:
                    return rendered
                self._clips[index] = clip
                self._rendered = index + 1
            rendered += 1

    def _render_loop(self, session: int, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            with self._lock:
                if session != self._session or self._rendered >= len(self._schedule):
                    return
                limit = self.voices.current_time - self._origin + self.render_ahead
            if not self._render_until(session, limit):
                stop_event.wait(self.interval)

    # ---------- Scheduling ----------
    def tick(self) -> int:
        """
        Dispatch every undispatched note starting before ``now + lookahead``.

        Returns the number of notes handed to the voice bank. Ends the session
        once everything has been dispatched and the last note has finished.
        Without threads, renders the clips coming due first.
        """
        if not self.threaded:
            with self._lock:
                if not self.is_playing:
                    return 0
                session = self._session
                limit = self.voices.current_time - self._origin + self.render_ahead
            self._render_until(session, limit)

        with self._lock:
            if not self.is_playing:
                return 0
            now = self.voices.current_time
            horizon = now + self.lookahead
            dispatched = 0
            while self._next < len(self._schedule):
                note = self._schedule[self._next]
                at = self._origin + note.start
                if at > horizon:
                    break
                if self._next >= self._rendered:
                    logger.debug("Note %d due at %.3fs is not rendered yet", self._next, at)
                    break
                clip = self._clips[self._next]
                self._clips[self._next] = None
                self.voices.trigger(note.instrument, note.pitch, note.velocity, at, note.duration,
                                    clip=clip)
                self._next += 1
                dispatched += 1
            if dispatched:
                logger.debug("Dispatched %d notes up to %.3fs", dispatched, horizon)
            if self._next >= len(self._schedule) and now >= self._end:
                self._finish()
            return dispatched

    def _finish(self) -> None:
        self._state = TransportState.STOPPED
        self._stop_event.set()
        self._thread = None
        logger.info("Finished playing %r", self._composition.title if self._composition else None)

    def _run(self, session: int, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.interval):
            if session != self._session:
                return
            self.tick()
