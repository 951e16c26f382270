"""Telegram alerts for newly recorded bets."""

import logging
from html import escape

from telegram import Bot
from telegram.constants import ParseMode
from telegram.error import TelegramError

from betstreak.services.stake import WagerRecord, format_number

logger = logging.getLogger(__name__)


def format_bet_alert(bet: WagerRecord, streak: int) -> str:
    """HTML alert for a newly detected bet."""
    symbol = escape(bet.currency_symbol.upper() or "?")
    payout = bet.potential_payout
    lines = [
        f"<b>New bet detected</b> (streak: {streak})",
        f"Amount: {escape(format_number(bet.amount))} {symbol}",
        f"Multiplier: {escape(format_number(bet.potential_multiplier))}x",
    ]
    if payout is not None:
        lines.append(f"Potential payout: {payout:g} {symbol}")
    lines.append(f"Status: {escape(bet.status or 'unknown')}")
    return "\n".join(lines)


class BetAlerter:
    """Posts one message to a fixed chat for each bet the tracker records."""

    def __init__(self, bot: Bot, chat_id: str):
        self.bot = bot
        self.chat_id = chat_id

    async def bet_recorded(self, bet: WagerRecord, streak: int) -> bool:
        """Send the alert. Delivery failures are logged and reported as False."""
        try:
            message = await self.bot.send_message(
                chat_id=self.chat_id,
                text=format_bet_alert(bet, streak),
                parse_mode=ParseMode.HTML,
            )
        except TelegramError as e:
            logger.warning(f"Bet alert for {bet.id} not delivered: {e.message}")
            return False

        logger.info(f"Bet alert for {bet.id} sent (message_id: {message.message_id})")
        return True
