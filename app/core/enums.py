from enum import StrEnum


class BattleStatus(StrEnum):
    WAITING = "waiting"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"

    @property
    def next_statuses(self) -> frozenset["BattleStatus"]:
        return BATTLE_TRANSITIONS[self]

    def can_transition_to(self, target: "BattleStatus") -> bool:
        return target in BATTLE_TRANSITIONS[self]

    @property
    def is_cancellable(self) -> bool:
        """Only battles nobody has joined yet may be deleted."""
        return self is BattleStatus.WAITING


BATTLE_TRANSITIONS: dict[BattleStatus, frozenset[BattleStatus]] = {
    BattleStatus.WAITING: frozenset({BattleStatus.IN_PROGRESS}),
    BattleStatus.IN_PROGRESS: frozenset({BattleStatus.FINISHED}),
    BattleStatus.FINISHED: frozenset(),
}
