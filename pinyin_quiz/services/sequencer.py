import random
from typing import List, Optional, Sequence, Tuple


class QuestionSequencer:
    """
    Tire `count` mots distincts : permutation uniforme de tout le vocabulaire,
    puis les `count` premiers reçoivent les positions 1..count.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.SystemRandom()

    def sequence(self, word_ids: Sequence[int], count: int) -> List[Tuple[int, int]]:
        """
        Retourne [(position, word_id), ...] avec position = 1..count.
        """
        if count < 1 or count > len(word_ids):
            raise ValueError(f"count must be in [1, {len(word_ids)}], got {count}")

        permuted = list(word_ids)
        self._rng.shuffle(permuted)
        return [(position, word_id) for position, word_id in enumerate(permuted[:count], start=1)]
