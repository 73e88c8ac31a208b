"""Multi-seat blackjack round engine with state machine."""

import logging
from random import Random
from typing import Any, Awaitable, Callable

from transitions import Machine

from table.cards import Card, Shoe
from table.counting import CardTracker
from table.errors import IllegalAction, InvalidBet, TableError
from table.game.events import EventEmitter, EventType, TableEvent
from table.game.seat import ControlType, Dealer, Seat, SeatResult
from table.game.state import RoundPhase
from table.hand import Hand, Outcome, compare
from table.rules import TableRules
from table.strategy.decision import Action, Decision, DecisionContext, PlayStyle
from table.strategy.policy import DecisionPolicy

logger = logging.getLogger(__name__)

# Called between a computer seat's decision and its effect (display pacing)
PaceCallback = Callable[[Seat, Decision], Awaitable[None]]


class BlackjackTable:
    """
    Blackjack table engine using a state machine.

    One instance holds a whole session: the shoe, the seats and the dealer.
    Every public operation is a synchronous transition, except
    ``play_computer_turns`` which awaits the decision policy.
    UI-agnostic: communication happens through events, the status message
    and ``snapshot()``.
    """

    # State machine states
    STATES = [p.name.lower() for p in RoundPhase]

    # State machine transitions
    TRANSITIONS = [
        {"trigger": "choose_styles", "source": "mode_select", "dest": "style_select"},
        {
            "trigger": "open_betting",
            "source": ["mode_select", "style_select", "settlement"],
            "dest": "betting",
        },
        {"trigger": "start_play", "source": "betting", "dest": "playing"},
        {"trigger": "start_dealer_turn", "source": "playing", "dest": "dealer_turn"},
        {"trigger": "settle_round", "source": "dealer_turn", "dest": "settlement"},
        {"trigger": "bankrupt", "source": "settlement", "dest": "session_over"},
        {"trigger": "reset_session", "source": "*", "dest": "mode_select"},
    ]

    def __init__(
        self,
        rules: TableRules | None = None,
        policy: DecisionPolicy | None = None,
        rng: Random | None = None,
    ) -> None:
        """
        Initialize a new table.

        Args:
            rules: Table rules (uses defaults if not provided)
            policy: Decision policy for computer seats (local rules if not provided)
            rng: Random number generator for reproducible shuffles
        """
        self.rules = rules or TableRules()
        self.policy = policy or DecisionPolicy()
        self.shoe = Shoe(
            num_decks=self.rules.num_decks,
            rng=rng,
            reshuffle_threshold=self.rules.reshuffle_threshold,
        )
        self.tracker = CardTracker(self.shoe)

        self.seats: list[Seat] = []
        self.dealer = Dealer()
        self.active_seat: int | None = None
        self.message = "Select number of players"
        self.last_decision: Decision | None = None
        self.events = EventEmitter()
        self._computer_turn_running = False

        # Initialize state machine
        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial="mode_select",
            auto_transitions=False,
            model_attribute="_machine_state",
        )

    @property
    def phase(self) -> RoundPhase:
        """Get the current phase as enum."""
        return RoundPhase[self._machine_state.upper()]  # type: ignore

    def subscribe(
        self,
        handler: Callable[[TableEvent], None],
        event_type: EventType | None = None,
    ) -> None:
        """Subscribe to table events."""
        self.events.subscribe(handler, event_type)

    # ------------------------------------------------------------------
    # Session setup

    def select_seat_count(self, count: int) -> None:
        """
        Seat the table.

        Seat 0 is the human player, every other seat is computer-controlled.
        Goes to style selection when there are computer seats, otherwise
        straight to betting.

        Raises:
            IllegalAction: Outside mode selection or for an invalid count
        """
        self._require_phase(RoundPhase.MODE_SELECT, "choose seats")
        if not 1 <= count <= self.rules.max_seats:
            self._reject(
                IllegalAction,
                f"Seat count must be between 1 and {self.rules.max_seats}",
            )

        self.seats = [
            Seat(
                name=f"Player {i + 1}",
                control=ControlType.HUMAN if i == 0 else ControlType.COMPUTER,
                chips=self.rules.starting_chips,
            )
            for i in range(count)
        ]
        self.events.emit(EventType.SEATS_SELECTED, count=count)

        if any(seat.is_computer for seat in self.seats):
            self.choose_styles()
            self.message = "Select computer play styles"
            return

        self._begin_betting()

    def select_computer_style(self, seat_index: int, style: PlayStyle | str) -> None:
        """
        Choose how a computer seat plays.

        Betting opens once every computer seat has a style.

        Raises:
            IllegalAction: Outside style selection, for a human seat or an
                unknown style
        """
        self._require_phase(RoundPhase.STYLE_SELECT, "choose styles")
        seat = self._seat_at(seat_index)
        if not seat.is_computer:
            self._reject(IllegalAction, f"{seat.name} is not a computer seat")
        try:
            seat.style = PlayStyle(style)
        except ValueError:
            self._reject(IllegalAction, f"Unknown play style: {style}")

        self.events.emit(EventType.STYLE_SELECTED, seat=seat_index, style=seat.style.value)

        pending = [s.name for s in self.seats if s.is_computer and s.style is None]
        if pending:
            self.message = f"Select a play style for {', '.join(pending)}"
            return

        self._begin_betting()

    def end_session(self) -> None:
        """Clear the table and go back to seat selection with a fresh shoe."""
        self.reset_session()
        self.seats = []
        self.dealer.reset_round()
        self.active_seat = None
        self.last_decision = None
        self.shoe.reshuffle()
        self.message = "Select number of players"
        self.events.emit(EventType.SESSION_ENDED)

    # ------------------------------------------------------------------
    # Betting

    def place_bet(self, amount: int) -> None:
        """
        Place the bet for the human seat whose turn it is to bet.

        Computer seats after it bet automatically. When the last seat has bet
        the cards are dealt.

        Raises:
            IllegalAction: Outside betting or when no human seat is betting
            InvalidBet: For a non-positive amount or more than the seat's chips
        """
        self._require_phase(RoundPhase.BETTING, "bet")
        seat = self.active
        if seat is None or not seat.is_human:
            self._reject(IllegalAction, "No human seat is betting")

        if amount <= 0:
            self._reject(InvalidBet, "Bet must be positive", EventType.INVALID_BET)
        if amount > seat.chips:
            self._reject(InvalidBet, "Not enough chips!", EventType.INVALID_BET)

        seat.place_bet(amount)
        self.events.emit(EventType.BET_PLACED, seat=self.active_seat, amount=amount)
        self._advance_betting(self.active_seat + 1)

    def computer_stake(self, seat: Seat) -> int:
        """Fixed stake for a computer seat's style, capped by its chips."""
        if seat.style == PlayStyle.AGGRESSIVE:
            stake = self.rules.aggressive_bet
        else:
            stake = self.rules.conservative_bet
        return min(stake, seat.chips)

    def _begin_betting(self) -> None:
        """Open a new round for bets."""
        self.open_betting()
        for seat in self.seats:
            seat.reset_round()
        self.dealer.reset_round()
        self.active_seat = None
        self.last_decision = None
        self.message = "Place your bets"
        self._advance_betting(0)

    def _advance_betting(self, start: int) -> None:
        """Auto-bet computer seats from ``start`` until a human must bet."""
        for index in range(start, len(self.seats)):
            seat = self.seats[index]
            if seat.is_broke:
                self.events.emit(EventType.SEAT_SITS_OUT, seat=index)
                continue
            if seat.is_human:
                self.active_seat = index
                self.message = f"{seat.name}, place your bet"
                return

            stake = self.computer_stake(seat)
            seat.place_bet(stake)
            self.events.emit(EventType.BET_PLACED, seat=index, amount=stake)

        self._deal_round()

    # ------------------------------------------------------------------
    # Dealing

    def _draw(self) -> Card:
        """Draw a card, rebuilding the shoe first if it ran dry."""
        if self.shoe.cards_remaining == 0:
            logger.info("Shoe exhausted mid-round, reshuffling")
            self.shoe.reshuffle()
            self.events.emit(EventType.SHOE_SHUFFLED, mid_round=True)
        return self.shoe.draw()

    def _deal_to(self, hand: Hand, owner: str, face_up: bool = True) -> Card:
        """Deal a card to a hand."""
        card = self._draw()
        hand.add_card(card)
        logger.debug("Dealt %s to %s", card, owner)
        self.events.emit(
            EventType.CARD_DEALT,
            card=str(card) if face_up else "??",
            to=owner,
            score=hand.score if face_up else None,
        )
        return card

    def _deal_round(self) -> None:
        """Deal two cards to every betting seat and to the dealer."""
        if self.shoe.needs_reshuffle:
            logger.info("Reshuffling with %d cards left", self.shoe.cards_remaining)
            self.shoe.reshuffle()
            self.events.emit(EventType.SHOE_SHUFFLED, mid_round=False)

        playing = [seat for seat in self.seats if seat.in_round]

        # Deal: each seat, dealer, each seat, dealer (face down)
        for seat in playing:
            self._deal_to(seat.hand, seat.name)
        self._deal_to(self.dealer.hand, "Dealer")
        for seat in playing:
            self._deal_to(seat.hand, seat.name)
        self._deal_to(self.dealer.hand, "Dealer", face_up=False)

        self.start_play()
        self.events.emit(EventType.ROUND_STARTED, seats=len(playing))

        for seat in playing:
            if seat.hand.is_natural:
                self._handle_natural(seat)

        self._activate(0)

    def _handle_natural(self, seat: Seat) -> None:
        """Announce a natural, paying it on the spot when the rules say so."""
        if self.rules.natural_payout is None:
            self.events.emit(EventType.SEAT_NATURAL, seat=seat.name, paid=0)
            return

        credit = int(seat.bet * self.rules.natural_payout)
        seat.settle(SeatResult(Outcome.NATURAL, credit))
        self.events.emit(EventType.SEAT_NATURAL, seat=seat.name, paid=credit)

    # ------------------------------------------------------------------
    # Seat turns

    @property
    def active(self) -> Seat | None:
        """The seat whose turn it is, to bet or to play."""
        if self.active_seat is None:
            return None
        return self.seats[self.active_seat]

    @property
    def awaiting_computer(self) -> bool:
        """Check if a computer seat is due to act."""
        seat = self.active
        return self.phase == RoundPhase.PLAYING and seat is not None and seat.is_computer

    @property
    def can_hit(self) -> bool:
        seat = self.active
        return self.phase == RoundPhase.PLAYING and seat is not None and seat.score < 21

    @property
    def can_stand(self) -> bool:
        return self.phase == RoundPhase.PLAYING and self.active is not None

    @property
    def can_double(self) -> bool:
        seat = self.active
        return self.phase == RoundPhase.PLAYING and seat is not None and seat.can_double

    @property
    def can_split(self) -> bool:
        """Splitting is not offered at this table."""
        return False

    def hit(self) -> None:
        """The human seat takes another card."""
        self._hit(self._require_human_turn())

    def stand(self) -> None:
        """The human seat keeps its hand."""
        self._stand(self._require_human_turn())

    def double_down(self) -> None:
        """The human seat doubles its bet and takes exactly one card."""
        self._double(self._require_human_turn())

    def split(self) -> None:
        """Splitting is not available."""
        self._require_human_turn()
        self._reject(IllegalAction, "Split is not available")

    def decision_context(self, seat: Seat) -> DecisionContext:
        """Describe a seat's situation for the decision policy."""
        if self.dealer.upcard is None:
            raise IllegalAction("No cards have been dealt")
        return DecisionContext(
            cards=tuple(seat.hand.cards),
            dealer_upcard=self.dealer.upcard,
            chips=seat.chips,
            bet=seat.bet,
            style=seat.style or PlayStyle.CONSERVATIVE,
            seat_name=seat.name,
        )

    async def play_computer_turns(
        self,
        pace: PaceCallback | None = None,
    ) -> list[Decision]:
        """
        Let computer seats act until a human seat is up or the round is settled.

        Each decision is applied before the next one is requested, so seats
        never interleave. Calling this while it is already running does
        nothing. A decision that arrives after the round has moved on (for
        instance the session was ended meanwhile) is discarded.

        Args:
            pace: Awaited between each decision and its effect

        Returns:
            The decisions that were applied, in order
        """
        if self._computer_turn_running:
            return []

        decisions: list[Decision] = []
        self._computer_turn_running = True
        try:
            while self.awaiting_computer:
                seat = self.active
                self.message = f"{seat.name} is thinking..."
                decision = await self.policy.decide(self.decision_context(seat))
                if not self._still_acting(seat):
                    logger.info("Dropped decision for %s, the round moved on", seat.name)
                    continue

                self.last_decision = decision
                self.events.emit(
                    EventType.COMPUTER_DECISION,
                    seat=seat.name,
                    action=decision.action.value,
                    reason=decision.reason,
                    source=decision.source,
                )
                if pace is not None:
                    await pace(seat, decision)
                    if not self._still_acting(seat):
                        logger.info("Dropped decision for %s, the round moved on", seat.name)
                        continue

                self._apply(seat, decision.action)
                decisions.append(decision)
        finally:
            self._computer_turn_running = False

        return decisions

    def _still_acting(self, seat: Seat) -> bool:
        """Check the seat still holds the turn after an await."""
        return self.phase == RoundPhase.PLAYING and self.active is seat

    def _apply(self, seat: Seat, action: Action) -> None:
        if action == Action.HIT:
            self._hit(seat)
        elif action == Action.DOUBLE:
            self._double(seat)
        else:
            self._stand(seat)

    def _hit(self, seat: Seat) -> None:
        self._deal_to(seat.hand, seat.name)
        self.events.emit(EventType.SEAT_HIT, seat=seat.name, score=seat.score)

        if seat.score > 21:
            self.events.emit(EventType.SEAT_BUSTS, seat=seat.name)
            self._advance(f"{seat.name} BUSTS!")
        elif seat.score == 21:
            self._advance(f"{seat.name} has 21!")
        else:
            self.message = f"{seat.name}: {seat.score}"

    def _stand(self, seat: Seat) -> None:
        self.events.emit(EventType.SEAT_STAND, seat=seat.name, score=seat.score)
        self._advance()

    def _double(self, seat: Seat) -> None:
        if not seat.hand.can_double:
            self._reject(IllegalAction, "Can only double down on the first two cards")
        if seat.chips < seat.bet:
            self._reject(IllegalAction, "Not enough chips to double down!")

        seat.double_bet()
        self._deal_to(seat.hand, seat.name)
        self.events.emit(
            EventType.SEAT_DOUBLE,
            seat=seat.name,
            score=seat.score,
            new_bet=seat.bet,
        )

        if seat.score > 21:
            self.events.emit(EventType.SEAT_BUSTS, seat=seat.name)
            self._advance(f"{seat.name} BUSTS!")
        else:
            self._advance()

    def _advance(self, note: str | None = None) -> None:
        """Move to the next seat after the active one."""
        self._activate(self.active_seat + 1, note)

    def _activate(self, start: int, note: str | None = None) -> None:
        """
        Give the turn to the first seat from ``start`` that can still act.

        Seats sitting out, already paid, or holding 21 are passed over.
        After the last seat the dealer plays.
        """
        for index in range(start, len(self.seats)):
            seat = self.seats[index]
            if not seat.in_round or seat.is_settled or seat.score >= 21:
                continue
            self.active_seat = index
            turn = f"{seat.name}'s turn"
            self.message = f"{note}\n{turn}" if note else turn
            self.events.emit(EventType.TURN_STARTED, seat=index, control=seat.control.value)
            return

        self.active_seat = None
        self._play_dealer()

    # ------------------------------------------------------------------
    # Dealer and settlement

    def _play_dealer(self) -> None:
        """Reveal the hole card and draw to the dealer's standing total."""
        self.start_dealer_turn()
        self.dealer.hole_card_revealed = True
        if len(self.dealer.hand) >= 2:
            self.events.emit(
                EventType.DEALER_REVEALS,
                card=str(self.dealer.hand.cards[1]),
                score=self.dealer.score,
            )

        while self.dealer.score < self.rules.dealer_stands_on:
            self._deal_to(self.dealer.hand, "Dealer")
            self.events.emit(EventType.DEALER_HITS, score=self.dealer.score)

        if self.dealer.hand.is_busted:
            self.events.emit(EventType.DEALER_BUSTS, score=self.dealer.score)
        else:
            self.events.emit(EventType.DEALER_STANDS, score=self.dealer.score)

        self._settle()

    def _settle(self) -> None:
        """Pay every seat against the dealer's final total."""
        self.settle_round()
        dealer_score = self.dealer.score
        lines = [f"Dealer: {dealer_score}", ""]

        for seat in self.seats:
            if not seat.in_round:
                lines.append(f"{seat.name}: Sitting out")
                continue
            if seat.is_settled:
                lines.append(f"{seat.name}: Natural! +${seat.result.credit - seat.bet}")
                continue

            outcome = compare(seat.score, dealer_score)
            if outcome == Outcome.WIN:
                credit = seat.bet * 3
                lines.append(f"{seat.name}: +${seat.bet * 2}")
                self.events.emit(EventType.SEAT_WINS, seat=seat.name, credit=credit)
            elif outcome == Outcome.PUSH:
                credit = seat.bet
                lines.append(f"{seat.name}: Push")
                self.events.emit(EventType.PUSH, seat=seat.name, credit=credit)
            elif outcome == Outcome.BUST:
                credit = 0
                lines.append(f"{seat.name}: BUST")
                self.events.emit(EventType.SEAT_LOSES, seat=seat.name, amount=seat.bet)
            else:
                credit = 0
                lines.append(f"{seat.name}: Lost ${seat.bet}")
                self.events.emit(EventType.SEAT_LOSES, seat=seat.name, amount=seat.bet)

            seat.settle(SeatResult(outcome, credit))

        self.message = "\n".join(lines)
        self.events.emit(
            EventType.ROUND_ENDED,
            dealer_score=dealer_score,
            chips={seat.name: seat.chips for seat in self.seats},
        )
        logger.info("Round settled: %s", self.message.replace("\n", " | "))

    def advance_to_next_round(self) -> None:
        """
        Clear hands and bets and open betting again. Chips carry over.

        When no seat has chips left the session is over instead.

        Raises:
            IllegalAction: Outside settlement
        """
        self._require_phase(RoundPhase.SETTLEMENT, "start the next round")

        if all(seat.is_broke for seat in self.seats):
            self.bankrupt()
            self.active_seat = None
            self.message = "Every seat is out of chips. Game over!"
            self.events.emit(EventType.SESSION_OVER)
            return

        self._begin_betting()

    # ------------------------------------------------------------------
    # Helpers

    def _seat_at(self, index: int) -> Seat:
        if not 0 <= index < len(self.seats):
            self._reject(IllegalAction, f"No seat {index}")
        return self.seats[index]

    def _require_phase(self, phase: RoundPhase, what: str) -> None:
        if self.phase != phase:
            self._reject(IllegalAction, f"Cannot {what} during {self.phase}")

    def _require_human_turn(self) -> Seat:
        """Return the active seat, which must be a human seat in play."""
        seat = self.active
        if self.phase != RoundPhase.PLAYING or seat is None:
            self._reject(IllegalAction, f"No seat can act during {self.phase}")
        if not seat.is_human:
            self._reject(IllegalAction, f"Waiting for {seat.name}")
        return seat

    def _reject(
        self,
        error: type[TableError],
        message: str,
        event_type: EventType = EventType.INVALID_ACTION,
    ) -> None:
        """Report a refused operation and raise. Nothing else changes."""
        self.message = message
        self.events.emit(event_type, message=message, phase=self.phase.name)
        logger.debug("Rejected: %s", message)
        raise error(message)

    # ------------------------------------------------------------------
    # Display state

    def snapshot(self) -> dict[str, Any]:
        """Everything a display needs, as plain data."""
        dealer_cards = [
            {
                "rank": str(card.rank),
                "suit": str(card.suit),
                "concealed": self.dealer.is_concealed(i),
            }
            for i, card in enumerate(self.dealer.hand.cards)
        ]
        return {
            "phase": self.phase.name,
            "message": self.message,
            "active_seat": self.active_seat,
            "seats": [
                {
                    "name": seat.name,
                    "control": seat.control.value,
                    "style": seat.style.value if seat.style else None,
                    "cards": [
                        {"rank": str(c.rank), "suit": str(c.suit), "concealed": False}
                        for c in seat.hand.cards
                    ],
                    "score": seat.score,
                    "chips": seat.chips,
                    "bet": seat.bet,
                    "in_round": seat.in_round,
                    "result": seat.result.label if seat.result else None,
                }
                for seat in self.seats
            ],
            "dealer": {
                "cards": dealer_cards,
                "score": self.dealer.visible_score,
                "hole_card_revealed": self.dealer.hole_card_revealed,
            },
            "shoe": {
                "remaining": self.shoe.cards_remaining,
                "dealt": self.shoe.cards_dealt,
                "total": self.shoe.total_cards,
            },
            "can_hit": self.can_hit,
            "can_stand": self.can_stand,
            "can_double": self.can_double,
            "can_split": self.can_split,
            "last_decision": str(self.last_decision) if self.last_decision else None,
        }
