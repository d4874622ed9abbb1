#!/usr/bin/env python3
"""
Combo Trainer – Random Striking Combination Caller (CLI)

Usage:
  python combo_trainer.py
  python combo_trainer.py -n 4 -t 2s
  python combo_trainer.py --config drills/kick_finisher.yaml --text-file session.txt
  python combo_trainer.py -n 3 --dry-run --rounds 20

Every round is a short combination of moves (jab, direto, chuta, ...). Moves
are picked at random, one position at a time, and only among the moves that
make sense for that position: the side alternates between lead and rear after
every move, short combinations stay on the arms and long ones finish with a
leg strike. The round is printed as one line (``F: jab direto``), a cue is
played for every move and the trainer waits before calling the next round.
Press Enter to stop after the current round.

Cues are either synthesized tones (default) or audio clips named after the
moves (``<sound_dir>/<move>.wav``). ``--render-clips DIR`` writes a starter
set of clips that can be replaced by recordings.

Dependencies: pyyaml, mido, numpy, soundfile, sounddevice

See `pyproject.toml` for an installable list.
"""
import argparse
import math
import os
import re
import sys
import random
import threading
import wave
from dataclasses import dataclass, field
from datetime import datetime

try:
    import yaml
except Exception:
    print("Missing dependency 'pyyaml'. Install with: pip install pyyaml")
    raise

try:
    import mido
    from mido import Message, MidiFile, MidiTrack, bpm2tempo
except Exception:
    print("Missing dependency 'mido'. Install with: pip install mido")
    raise

import numpy as np


# ------------------------- Utilities ---------------------------------
def print_red(text):
    """Print text in red color using ANSI escape codes."""
    RED = '\033[91m'
    RESET = '\033[0m'
    print(f"{RED}{text}{RESET}")


class ConfigError(ValueError):
    """Raised when the configuration cannot produce a playable session."""


class NoEligibleMoveError(RuntimeError):
    """Raised when no move passes the rules for a position."""


class PlaybackError(RuntimeError):
    """Raised when a cue cannot be loaded or played."""


_DURATION_UNITS = {
    'ns': 1e-9,
    'us': 1e-6,
    'µs': 1e-6,
    'ms': 1e-3,
    's': 1.0,
    'm': 60.0,
    'h': 3600.0,
}
_DURATION_PART = re.compile(r'(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)')


def parse_duration(value) -> float:
    """Parse a duration into seconds.

    Accepts plain numbers (seconds) and duration strings such as ``1s``,
    ``500ms``, ``1.5s`` or ``1m30s``.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = str(value).strip()
        if not text:
            raise ValueError("Invalid duration: empty string")
        try:
            seconds = float(text)
        except ValueError:
            pos = 0
            seconds = 0.0
            while pos < len(text):
                m = _DURATION_PART.match(text, pos)
                if m is None:
                    raise ValueError(f"Invalid duration: {value!r}")
                seconds += float(m.group(1)) * _DURATION_UNITS[m.group(2)]
                pos = m.end()
    if not math.isfinite(seconds) or seconds < 0:
        raise ValueError(f"Duration must be a finite, non-negative value: {value!r}")
    return seconds


def as_bool(value, what):
    # Quoted strings such as "false" are rejected.
    if not isinstance(value, bool):
        raise ConfigError(f"{what} must be true or false, got {value!r}")
    return value


def sound_section(cfg: dict) -> dict:
    sound_cfg = cfg.get('sound') or {}
    if not isinstance(sound_cfg, dict):
        raise ConfigError(f"'sound' must be a mapping, got {sound_cfg!r}")
    return sound_cfg


def parse_yaml(path: str) -> dict:
    with open(path, 'r', encoding='utf8') as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at the top level")
    return data


# ------------------------- Move catalog ------------------------------

@dataclass(frozen=True)
class Move:
    name: str
    lead: bool
    rear: bool
    leg: bool = False
    # Inverse weight: 0.0 can always be picked, 1.0 is never picked.
    skip_probability: float = 0.0


# Ordered from the simplest move to the hardest; -d keeps the first N.
DEFAULT_MOVES = [
    Move('jab', lead=True, rear=False),
    Move('direto', lead=False, rear=True),
    Move('cruza', lead=True, rear=True, skip_probability=0.3),
    Move('chuta', lead=True, rear=True, leg=True),
    Move('tip', lead=True, rear=True, leg=True, skip_probability=0.5),
    Move('upper', lead=True, rear=True, skip_probability=0.3),
    Move('cotovelo', lead=True, rear=True, skip_probability=0.5),
    Move('joelho', lead=True, rear=True, leg=True, skip_probability=0.5),
]


def parse_moves(entries):
    """Build a custom catalog from the ``moves`` list of a config file.

    Each entry is a mapping with ``name`` and optional ``lead``, ``rear``,
    ``leg`` and ``skip`` (or ``skip_probability``) keys. Order is kept.
    """
    if not isinstance(entries, list) or not entries:
        raise ConfigError("'moves' must be a non-empty list")
    moves = []
    seen = set()
    for i, entry in enumerate(entries, start=1):
        if not isinstance(entry, dict):
            raise ConfigError(f"Move #{i} must be a mapping, got {entry!r}")
        name = str(entry.get('name', '')).strip()
        if not name:
            raise ConfigError(f"Move #{i} has no name")
        if name in seen:
            raise ConfigError(f"Duplicate move name '{name}'")
        if any(ch.isspace() or ch in '/\\' for ch in name):
            raise ConfigError(f"Move name '{name}' must be a single word (it names the clip file)")
        skip = entry.get('skip', entry.get('skip_probability', 0.0))
        try:
            skip = float(skip)
        except (TypeError, ValueError):
            raise ConfigError(f"Move '{name}': skip probability {skip!r} is not a number")
        if not 0.0 <= skip <= 1.0:
            raise ConfigError(f"Move '{name}': skip probability {skip} is outside [0, 1]")
        move = Move(
            name,
            lead=as_bool(entry.get('lead', True), f"Move '{name}': lead"),
            rear=as_bool(entry.get('rear', True), f"Move '{name}': rear"),
            leg=as_bool(entry.get('leg', False), f"Move '{name}': leg"),
            skip_probability=skip,
        )
        if not move.lead and not move.rear:
            raise ConfigError(f"Move '{name}' is usable on neither side")
        seen.add(name)
        moves.append(move)
    return moves


def find_move(catalog, name):
    for m in catalog:
        if m.name == name:
            return m
    raise ConfigError(f"Unknown move '{name}'")


# ------------------------- Configuration -----------------------------

@dataclass(frozen=True)
class TrainerConfig:
    sequence_length: int = 2
    max_distinct: int = 0
    arm_only: bool = False
    leg_only: bool = False
    interval: float = 1.0
    seed: int = 2

    def validate(self):
        if self.sequence_length < 1:
            raise ConfigError(f"Sequence length must be at least 1, got {self.sequence_length}")
        if self.max_distinct < 0:
            raise ConfigError(f"Distinct move count must not be negative, got {self.max_distinct}")
        if self.interval < 0:
            raise ConfigError(f"Interval must not be negative, got {self.interval}")
        return self


def _pick(args, attr, cfg, key, default):
    # Explicit CLI values win over the config file, which wins over defaults.
    value = getattr(args, attr, None)
    if value is not None:
        return value
    value = cfg.get(key)
    if value is not None:
        return value
    return default


def build_config(cfg: dict, args) -> TrainerConfig:
    """Merge a parsed config file and CLI-like args into a TrainerConfig."""
    defaults = TrainerConfig()
    try:
        config = TrainerConfig(
            sequence_length=int(_pick(args, 'sequence_length', cfg, 'sequence_length', defaults.sequence_length)),
            max_distinct=int(_pick(args, 'distinct_moves', cfg, 'distinct_moves', defaults.max_distinct)),
            arm_only=as_bool(_pick(args, 'arm_only', cfg, 'arm_only', defaults.arm_only), 'arm_only'),
            leg_only=as_bool(_pick(args, 'leg_only', cfg, 'leg_only', defaults.leg_only), 'leg_only'),
            interval=parse_duration(_pick(args, 'interval', cfg, 'interval', defaults.interval)),
            seed=int(_pick(args, 'seed', cfg, 'random_seed', defaults.seed)),
        )
    except ConfigError:
        raise
    except (TypeError, ValueError) as e:
        raise ConfigError(str(e)) from e
    return config.validate()


# ------------------------- Catalog filter ----------------------------

def filter_catalog(catalog, config: TrainerConfig):
    """Return the working move set for a run.

    Leg-only keeps leg moves, arm-only drops them, and without leg-only the
    leg moves are also dropped for combinations of 2 or 3 moves. The result
    is then cut to the first ``max_distinct`` moves in catalog order.
    """
    result = []
    for m in catalog:
        if config.leg_only:
            if not m.leg:
                continue
        elif config.arm_only:
            if m.leg:
                continue
        elif m.leg and 1 < config.sequence_length < 4:
            continue
        result.append(m)

    if config.max_distinct > 0 and len(result) > config.max_distinct:
        result = result[:config.max_distinct]
    return result


# ------------------------- Rule engine -------------------------------

@dataclass(frozen=True)
class SelectionContext:
    is_lead: bool
    position: int
    sequence_length: int
    previous: tuple = field(default=())

    @property
    def is_last(self):
        return self.position == self.sequence_length - 1


def probability_rule(move, ctx, rng):
    # One draw per candidate and per selection.
    p = rng.random()
    return move.skip_probability <= p


def lead_rule(move, ctx, rng):
    return move.lead


def rear_rule(move, ctx, rng):
    return move.rear


def must_be_leg_rule(move, ctx, rng):
    return move.leg


def must_not_be_leg_rule(move, ctx, rng):
    return not move.leg


def is_mixed(working_set):
    has_leg = any(m.leg for m in working_set)
    has_arm = any(not m.leg for m in working_set)
    return has_leg and has_arm


def build_rules(working_set, ctx: SelectionContext, *, with_probability=True):
    """Return the ordered rule list for one position of a round."""
    rules = []
    if with_probability:
        rules.append(probability_rule)

    # jab only on the lead side, direto only with the rear arm, etc.
    if ctx.is_lead:
        rules.append(lead_rule)
    else:
        rules.append(rear_rule)

    # Only for sets mixing arm and leg moves.
    if is_mixed(working_set):
        if ctx.sequence_length >= 4 and ctx.is_last:
            rules.append(must_be_leg_rule)
        elif ctx.sequence_length != 1:
            rules.append(must_not_be_leg_rule)
    return rules


def apply_rules(working_set, rules, ctx, rng):
    allowed = []
    for m in working_set:
        if all(rule(m, ctx, rng) for rule in rules):
            allowed.append(m)
    return allowed


def side_name(is_lead):
    return 'lead' if is_lead else 'rear'


def select_move(working_set, ctx: SelectionContext, rng=None) -> Move:
    """Pick one move for the position described by ``ctx``.

    Raises NoEligibleMoveError when every move is filtered out.
    """
    if rng is None:
        rng = random
    rules = build_rules(working_set, ctx)
    allowed = apply_rules(working_set, rules, ctx, rng)
    if not allowed:
        raise NoEligibleMoveError(
            f"No move available for position {ctx.position + 1} of {ctx.sequence_length} "
            f"on the {side_name(ctx.is_lead)} side"
        )
    return allowed[rng.randrange(len(allowed))]


def sides_for_position(position, sequence_length):
    """Sides a position can take across rounds, given the first round starts on the lead side."""
    if sequence_length % 2 == 0:
        return (position % 2 == 0,)
    return (True, False)


def check_working_set(working_set, config: TrainerConfig):
    """Fail fast when the working set cannot always complete a round.

    Every reachable (position, side) slot needs a move that passes the side
    and limb rules and has a skip probability of 0, since such a move always
    survives the probability draw.
    """
    if not working_set:
        raise ConfigError("No moves left after filtering; relax -d, -ol, -oa or -n")
    n = config.sequence_length
    for position in range(n):
        for is_lead in sides_for_position(position, n):
            ctx = SelectionContext(is_lead=is_lead, position=position, sequence_length=n)
            rules = build_rules(working_set, ctx, with_probability=False)
            candidates = apply_rules(working_set, rules, ctx, None)
            if not any(m.skip_probability == 0 for m in candidates):
                names = ', '.join(m.name for m in candidates) or 'none'
                raise ConfigError(
                    f"Position {position + 1} of {n} on the {side_name(is_lead)} side has no move "
                    f"that can always be chosen (candidates: {names})"
                )
    return working_set


# ------------------------- Sequence generator ------------------------

SIDE_MARKERS = {True: 'F', False: 'T'}  # frente / trás


def generate_round(working_set, config: TrainerConfig, is_lead, rng=None):
    """Generate one round. Returns (moves, is_lead for the next round)."""
    moves = []
    for position in range(config.sequence_length):
        ctx = SelectionContext(
            is_lead=is_lead,
            position=position,
            sequence_length=config.sequence_length,
            previous=tuple(moves),
        )
        moves.append(select_move(working_set, ctx, rng))
        # The side flips after every move, whatever was picked.
        is_lead = not is_lead
    return moves, is_lead


def iter_rounds(working_set, config: TrainerConfig, rng=None):
    """Yield (starting_lead, moves) forever, starting on the lead side."""
    is_lead = True
    while True:
        starting_lead = is_lead
        moves, is_lead = generate_round(working_set, config, is_lead, rng)
        yield starting_lead, moves


def format_round(moves, starting_lead):
    return f"{SIDE_MARKERS[starting_lead]}: " + ' '.join(m.name for m in moves)


def run_session(rounds, config: TrainerConfig, *, play=None, stop=None, out=None, max_rounds=0, wait=True):
    """Print and play rounds until ``stop`` is set or ``max_rounds`` is reached.

    ``rounds`` yields (starting_lead, moves). ``play`` is called with each move
    name and must block until the cue has finished. ``stop`` is only checked
    between rounds, so a round that started is always played to the end.
    Returns the rounds that were played.
    """
    if stop is None:
        stop = threading.Event()
    played = []
    for starting_lead, moves in rounds:
        print(format_round(moves, starting_lead), file=out, flush=True)
        played.append((starting_lead, list(moves)))
        if play is not None:
            for m in moves:
                play(m.name)
        if max_rounds and len(played) >= max_rounds:
            break
        if wait:
            if stop.wait(config.interval):
                break
        elif stop.is_set():
            break
    return played


# ------------------------- Termination trigger -----------------------

def _wait_for_keypress(stop, stream):
    try:
        stream.read(1)
    except (OSError, ValueError) as e:
        print_red(f'Warning: could not read from stdin: {e}')
    finally:
        stop.set()


def start_keypress_listener(stop, stream=None):
    """Set ``stop`` once a byte (or EOF) arrives on stdin."""
    if stream is None:
        stream = getattr(sys.stdin, 'buffer', sys.stdin)
    t = threading.Thread(target=_wait_for_keypress, args=(stop, stream), name='keypress-listener', daemon=True)
    t.start()
    return t


# ------------------------- Audio cues --------------------------------

CUE_BASE_NOTE = 60


def midi_to_freq(midi: int) -> float:
    return 440.0 * (2 ** ((midi - 69) / 12.0))


def cue_notes(catalog):
    """MIDI note per move, a whole tone apart in catalog order."""
    # Clamp to valid MIDI range (0-127)
    return {m.name: min(127, CUE_BASE_NOTE + 2 * i) for i, m in enumerate(catalog)}


def synth_cue(midi, duration=0.3, sample_rate=44100):
    """Return a short decaying sine cue as a float32 array in [-0.9, 0.9]."""
    t = np.linspace(0, duration, int(sample_rate * duration), False)
    freq = midi_to_freq(int(midi))
    data = 0.6 * np.sin(2 * np.pi * freq * t) * np.exp(-6 * t)
    maxv = np.max(np.abs(data)) if data.size else 0
    if maxv > 0:
        data = data / maxv * 0.9
    return data.astype(np.float32)


def write_wav_mono(path, arr, sr=44100):
    """Write a mono float array to a 16-bit WAV file."""
    a = np.clip(np.asarray(arr, dtype=np.float64), -1.0, 1.0)
    audio = (a * 32767).astype(np.int16)
    with wave.open(path, 'w') as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(int(sr))
        wf.writeframes(audio.tobytes())


def render_clips(catalog, out_dir, duration=0.3, sample_rate=44100):
    """Write one synthesized ``<move>.wav`` cue per move into ``out_dir``."""
    os.makedirs(out_dir, exist_ok=True)
    notes = cue_notes(catalog)
    paths = []
    for m in catalog:
        path = clip_path(out_dir, m.name, 'wav')
        write_wav_mono(path, synth_cue(notes[m.name], duration, sample_rate), sample_rate)
        paths.append(path)
    return paths


def play_samples(data, sample_rate):
    """Play samples on the default output device and block until done."""
    try:
        import sounddevice as sd
    except OSError as e:
        # PortAudio library missing
        raise PlaybackError(f'Audio output unavailable: {e}') from e
    try:
        sd.play(data, sample_rate)
        sd.wait()
    except sd.PortAudioError as e:
        raise PlaybackError(f'Audio device error: {e}') from e


def clip_path(sound_dir, name, ext='wav'):
    return os.path.join(sound_dir, f"{name}.{ext.lstrip('.')}")


class ClipPlayer:
    """Plays ``<sound_dir>/<move>.<ext>`` clips, decoded once and cached."""

    def __init__(self, sound_dir, ext='wav', output=play_samples):
        self.sound_dir = sound_dir
        self.ext = ext
        self._output = output
        self._cache = {}

    def load(self, name):
        if name in self._cache:
            return self._cache[name]
        path = clip_path(self.sound_dir, name, self.ext)
        if not os.path.isfile(path):
            raise PlaybackError(f"Missing clip for move '{name}': {path}")
        import soundfile as sf
        try:
            data, sr = sf.read(path, dtype='float32', always_2d=False)
        except (RuntimeError, OSError, TypeError) as e:
            raise PlaybackError(f"Cannot decode clip {path}: {e}") from e
        self._cache[name] = (data, sr)
        return data, sr

    def preload(self, names):
        for name in names:
            self.load(name)

    def __call__(self, name):
        data, sr = self.load(name)
        self._output(data, sr)


class TonePlayer:
    """Plays a synthesized cue per move, no audio files needed."""

    def __init__(self, catalog, duration=0.3, sample_rate=44100, output=play_samples):
        self.notes = cue_notes(catalog)
        self.duration = duration
        self.sample_rate = sample_rate
        self._output = output
        self._cache = {}

    def preload(self, names):
        for name in names:
            self._cue(name)

    def _cue(self, name):
        if name not in self._cache:
            if name not in self.notes:
                raise PlaybackError(f"No cue for move '{name}'")
            self._cache[name] = synth_cue(self.notes[name], self.duration, self.sample_rate)
        return self._cache[name]

    def __call__(self, name):
        self._output(self._cue(name), self.sample_rate)


def build_player(args, sound_cfg: dict, catalog):
    if not isinstance(sound_cfg, dict):
        raise ConfigError(f"'sound' must be a mapping, got {sound_cfg!r}")
    sound_dir = getattr(args, 'sound_dir', None) or sound_cfg.get('clips_dir')
    method = sound_cfg.get('method', 'clips' if sound_dir else 'tone')
    if getattr(args, 'tone', False):
        method = 'tone'
    elif getattr(args, 'sound_dir', None):
        method = 'clips'
    cue_duration = parse_duration(sound_cfg.get('cue_duration', 0.3))
    if method == 'tone':
        return TonePlayer(catalog, duration=cue_duration)
    if method == 'clips':
        if not sound_dir:
            raise ConfigError("sound.method 'clips' needs sound.clips_dir or --sound-dir")
        return ClipPlayer(sound_dir, ext=sound_cfg.get('extension', 'wav'))
    raise ConfigError(f"Unknown sound method: {method}")


# ------------------------- Session log -------------------------------

_LOG_LINE = re.compile(r'^\d+:\s*([FT]):\s*(.*)$')


def write_text_log(path: str, rounds, config: TrainerConfig):
    with open(path, 'w', encoding='utf8') as f:
        f.write("Combo Trainer Log\n")
        f.write(f"Sequence length: {config.sequence_length}\n")
        f.write(f"Seed: {config.seed}\n")
        f.write(f"Generated: {len(rounds)} rounds\n\n")
        for i, (starting_lead, moves) in enumerate(rounds, start=1):
            f.write(f"{i:04d}: {format_round(moves, starting_lead)}\n")
    print(f'Wrote text log to {path}')


def parse_text_log(path: str):
    """Read rounds back from a log written by write_text_log.

    Returns a list of (starting_lead, [move names]); other lines are skipped.
    """
    rounds = []
    with open(path, 'r', encoding='utf8') as f:
        for line in f:
            m = _LOG_LINE.match(line.strip())
            if m is None:
                continue
            names = m.group(2).split()
            if names:
                rounds.append((m.group(1) == 'F', names))
    return rounds


def resolve_logged_rounds(logged, catalog):
    return [(lead, [find_move(catalog, n) for n in names]) for lead, names in logged]


# ------------------------- MIDI export -------------------------------

def write_session_midi(path, rounds, notes, interval, cue_duration=0.3, tempo_bpm=120, velocity=90):
    """Write the session as a MIDI track: a marker per round, a note per move."""
    mid = MidiFile()
    track = MidiTrack()
    mid.tracks.append(track)
    track.append(mido.MetaMessage('set_tempo', tempo=bpm2tempo(tempo_bpm)))
    ticks_per_beat = mid.ticks_per_beat

    def secs_to_ticks(s):
        return int(s * (ticks_per_beat * tempo_bpm / 60.0))

    rest = 0
    for starting_lead, moves in rounds:
        track.append(mido.MetaMessage('marker', text=format_round(moves, starting_lead), time=rest))
        for m in moves:
            n = notes[m.name]
            track.append(Message('note_on', note=n, velocity=velocity, time=0))
            track.append(Message('note_off', note=n, velocity=0, time=secs_to_ticks(cue_duration)))
        rest = secs_to_ticks(interval)
    mid.save(path)
    print(f'Wrote session MIDI to {path}')
    return mid


# ---------------------- Main program ---------------------------------

DRY_RUN_ROUNDS = 10


def build_parser():
    parser = argparse.ArgumentParser(description='Random striking combinations with audio cues.')
    parser.add_argument('--config', '-c', help='YAML drill file')
    parser.add_argument('-d', '--distinct-moves', dest='distinct_moves', type=int, default=None,
                        help='Number of distinct moves. 0 allows every move (default 0)')
    parser.add_argument('-n', '--sequence-length', dest='sequence_length', type=int, default=None,
                        help='Moves per round (default 2)')
    parser.add_argument('-ol', '--leg-only', dest='leg_only', action='store_true', default=None,
                        help='Only leg strikes')
    parser.add_argument('-oa', '--arm-only', dest='arm_only', action='store_true', default=None,
                        help='Only arm strikes')
    parser.add_argument('-t', '--interval', default=None, help='Pause between rounds, e.g. 1s, 500ms (default 1s)')
    parser.add_argument('--seed', type=int, default=None, help='Random seed (default 2)')
    parser.add_argument('--rounds', type=int, default=None, help='Stop after this many rounds (0 = until Enter)')
    parser.add_argument('--dry-run', action='store_true', help='Print rounds without audio or pauses')
    parser.add_argument('--sound-dir', help='Directory with <move>.<ext> clips')
    parser.add_argument('--tone', action='store_true', help='Use synthesized cues even if clips are configured')
    parser.add_argument('--text-file', help='Write the played rounds to a text log')
    parser.add_argument('--from-text', help='Replay rounds from a text log instead of generating them')
    parser.add_argument('--midi', help='Write the played rounds to a MIDI file')
    parser.add_argument('--render-clips', metavar='DIR', help='Write synthesized cue clips to DIR and exit')
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        cfg = parse_yaml(args.config) if args.config else {}
        config = build_config(cfg, args)
        catalog = parse_moves(cfg['moves']) if cfg.get('moves') else list(DEFAULT_MOVES)
        sound_cfg = sound_section(cfg)
        cue_duration = parse_duration(sound_cfg.get('cue_duration', 0.3))
    except (ConfigError, ValueError, OSError, yaml.YAMLError) as e:
        print_red(f'Error: {e}')
        return 2

    if args.render_clips:
        paths = render_clips(catalog, args.render_clips, duration=cue_duration)
        print(f'Wrote {len(paths)} clips to {args.render_clips}')
        return 0

    rng = random.Random(config.seed)
    try:
        if args.from_text:
            rounds = resolve_logged_rounds(parse_text_log(args.from_text), catalog)
            names = sorted({m.name for _, moves in rounds for m in moves})
        else:
            working_set = check_working_set(filter_catalog(catalog, config), config)
            rounds = iter_rounds(working_set, config, rng)
            names = [m.name for m in working_set]
        player = None if args.dry_run else build_player(args, sound_cfg, catalog)
        max_rounds = args.rounds if args.rounds is not None else int(cfg.get('rounds', 0) or 0)
    except (ConfigError, ValueError, OSError) as e:
        print_red(f'Error: {e}')
        return 2

    if args.dry_run and not max_rounds and not args.from_text:
        max_rounds = DRY_RUN_ROUNDS

    stop = threading.Event()
    try:
        if player is not None:
            # Missing or broken clips abort before the first round.
            player.preload(names)
            print(f"Moves: {', '.join(names)}")
            print('Press Enter to stop after the current round.')
            print()
            start_keypress_listener(stop)
        played = run_session(
            rounds,
            config,
            play=player,
            stop=stop,
            max_rounds=max_rounds,
            wait=not args.dry_run,
        )
    except PlaybackError as e:
        print_red(f'Playback error: {e}')
        return 1
    except NoEligibleMoveError as e:
        print_red(f'Error: {e}')
        return 1

    if not args.dry_run:
        print(f'Session finished after {len(played)} rounds ({datetime.now():%H:%M:%S})')
    try:
        if args.text_file:
            write_text_log(args.text_file, played, config)
        if args.midi:
            write_session_midi(args.midi, played, cue_notes(catalog), config.interval, cue_duration)
    except (OSError, ValueError) as e:
        print_red(f'Error: could not write session file: {e}')
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
