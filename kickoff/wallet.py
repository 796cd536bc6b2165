"""Virtual wallet for simulated bets."""
import logging
import math
import threading
import time
from typing import Dict, List

from .config import BALANCE_KEY, BET_HISTORY_KEY, DEFAULT_GG_ODDS, DEFAULT_NG_ODDS, INITIAL_BALANCE
from .models import Bet, Match, new_id
from .storage import KeyValueStore

logger = logging.getLogger(__name__)


class BetRejected(ValueError):
    """A bet failed validation; nothing was debited."""


def bet_selections(match: Match) -> Dict[str, float]:
    """Selectable outcomes and their odds for a match."""
    return {
        "1": match.odds.home,
        "X": match.odds.draw,
        "2": match.odds.away,
        "GOL": match.odds.gg or DEFAULT_GG_ODDS,
        "NO GOL": match.odds.ng or DEFAULT_NG_ODDS,
    }


class Wallet:
    """Balance and bet ledger kept in the local store."""

    def __init__(self, store: KeyValueStore, initial_balance: float = INITIAL_BALANCE):
        self.store = store
        self.initial_balance = initial_balance
        self._lock = threading.Lock()

    @property
    def balance(self) -> float:
        return self.store.get_float(BALANCE_KEY, self.initial_balance)

    def bets(self) -> List[Bet]:
        raw = self.store.get_json(BET_HISTORY_KEY, [])
        if not isinstance(raw, list):
            return []
        bets = []
        for entry in raw:
            try:
                bets.append(Bet.from_dict(entry))
            except (KeyError, TypeError, AttributeError) as e:
                logger.warning(f"Skipping malformed bet: {e}")
        return bets

    def place_bet(self, match: Match, selection: str, amount: float) -> Bet:
        """
        Debit amount and record a bet on selection.

        Raises:
            BetRejected: unknown selection, non-positive amount, missing odds
                or insufficient balance
        """
        selections = bet_selections(match)
        selection = selection.strip().upper()
        if selection not in selections:
            raise BetRejected(f"Unknown selection {selection!r}; choose one of {', '.join(selections)}")
        odds = selections[selection]
        if not odds or odds <= 1.0:
            raise BetRejected(f"No odds available for {selection}")
        if not math.isfinite(amount) or amount <= 0:
            raise BetRejected("Amount must be a positive number")

        with self._lock:
            balance = self.balance
            if amount > balance:
                raise BetRejected(f"Insufficient balance: {balance:.2f} available")

            bet = Bet(
                id=new_id(),
                match_id=match.id,
                match_name=match.name,
                selection=selection,
                odds=odds,
                amount=amount,
                potential_win=amount * odds,
                timestamp=int(time.time() * 1000),
            )
            self.store.set(BALANCE_KEY, str(balance - amount))
            self.store.set_json(BET_HISTORY_KEY, [bet.to_dict()] + [b.to_dict() for b in self.bets()])

        logger.info(f"Bet placed: {amount:.2f} on {selection} @ {odds} ({match.name})")
        return bet

    def reset(self) -> None:
        with self._lock:
            self.store.remove(BALANCE_KEY)
            self.store.remove(BET_HISTORY_KEY)
