
from base.Core import CardMove, Core, DrawCards, GameEvent, RecycleWaste, RevealTop, ToFoundation, WasteToTableau
from session.view_model import AnimationEvent, CardView, GameViewModel, PileView


class CoreAdapter:
    """Bridges the Core state/events to a renderer-friendly model."""

    @staticmethod
    def card_view(card) -> CardView:
        return CardView(suit=card.suit.value, rank=card.rank, face_up=card.faceUp, label=card.gameStr())

    @staticmethod
    def pile_view(pile) -> PileView:
        return PileView(cards=tuple(CoreAdapter.card_view(card) for card in pile))

    @staticmethod
    def snapshot(core: Core) -> GameViewModel:
        with core.lock:
            return GameViewModel(
                stock_count=len(core.stock),
                waste=CoreAdapter.pile_view(core.waste),
                tableau=tuple(CoreAdapter.pile_view(column) for column in core.tableau),
                foundations=tuple(CoreAdapter.pile_view(foundation) for foundation in core.foundations),
                moves=core.moveCount,
                game_won=core.gameWon,
                no_moves_left=core.noMovesLeft,
            )

    @staticmethod
    def event_to_animation(event: GameEvent) -> AnimationEvent:
        if isinstance(event, DrawCards):
            return AnimationEvent(type="DRAW", payload={"count": event.count})
        if isinstance(event, RecycleWaste):
            return AnimationEvent(type="RECYCLE", payload={"count": event.count})
        if isinstance(event, CardMove):
            return AnimationEvent(
                type="MOVE",
                payload={"src": event.src, "dest": event.dest, "count": event.count},
            )
        if isinstance(event, WasteToTableau):
            return AnimationEvent(
                type="WASTE_TO_TABLEAU",
                payload={"card": str(event.card), "dest": event.dest},
            )
        if isinstance(event, ToFoundation):
            return AnimationEvent(
                type="TO_FOUNDATION",
                payload={
                    "card": str(event.card),
                    "source": event.source,
                    "foundation": event.foundation,
                    "auto": event.auto,
                },
            )
        if isinstance(event, RevealTop):
            return AnimationEvent(type="REVEAL", payload={"stack": event.idx})
        return AnimationEvent(type="UNKNOWN", payload={"event": type(event).__name__})
