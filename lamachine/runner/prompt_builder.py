"""Prompt construction for constrained generation.

Builds the system directive and the per-attempt prompts sent to the text
generator. Prompts exist in French and English; the directive itself is
always written in English with a language line selecting the output.
"""

from lamachine.constraints.models import Constraint
from lamachine.providers.llm.base import LLMMessage
from lamachine.runner.models import Difficulty, Language

_QUOTES = "\"'’"

_INITIAL_PROMPTS: dict[str, str] = {
    "fr": "Écris un texte original qui respecte la contrainte. Commence immédiatement.",
    "en": "Write an original text that respects the constraint. Start immediately.",
}


def join_continuation(base_text: str, chunk: str) -> str:
    """Normalize the first chunk of a continuation so it appends cleanly.

    After a whitespace-terminated base, leading whitespace is dropped. After
    an elision mark ("L'") leading whitespace and quotes are dropped too, so
    "L'" + " 'air" reads "L'air".
    """
    if not base_text:
        return chunk
    tail = base_text[-1]
    if tail.isspace():
        return chunk.lstrip()
    if tail in _QUOTES:
        return chunk.lstrip().lstrip(_QUOTES)
    return chunk


class PromptBuilder:
    """Builds system directives and attempt prompts for a run."""

    def __init__(self, context_window_chars: int = 120) -> None:
        self._context_window_chars = context_window_chars

    def build_system_prompt(
        self,
        constraint: Constraint,
        param: str,
        language: Language,
        difficulty: Difficulty = "normal",
        steering: str | None = None,
        min_chars_to_beat: int | None = None,
    ) -> str:
        """Build the generator's system directive.

        Args:
            constraint: Constraint the text must obey
            param: Constraint parameter, ignored when none is needed
            language: Output language
            difficulty: "hard" adds a conservative-wording line
            steering: Optional player hint
            min_chars_to_beat: Optional versus goal

        Returns:
            System prompt, blocks separated by blank lines
        """
        blocks = [
            "You are La Machine: a writing model challenged to obey a formal "
            "Oulipo-like constraint.",
            "Your primary objective is to produce as much text as possible while "
            "NEVER violating the constraint.",
            "The text you generate MUST make sense: readable and coherent (poetic "
            "is OK; gibberish or random word soup is NOT).",
            "If you are unsure, choose safer words. Prefer short sentences. Avoid "
            "risky letters and word starts.",
            "Do not split words into letters separated by spaces; write normal words.",
            "If you are asked to retry, keep the overall meaning and style coherent "
            "(continue the same text) while avoiding the exact mistake.",
        ]
        if difficulty == "hard":
            blocks.append(
                "Hard mode: be extra conservative with word choice and structure. "
                "Prefer simple syntax and low-risk words."
            )
        blocks.append(
            "Do not mention the rules or comment on your writing. Only output the "
            "text itself (no Markdown)."
        )
        blocks.append(self._language_line(language))
        blocks.append(self._constraint_line(constraint, param))

        if steering and steering.strip():
            blocks.append(
                "User steering (follow if compatible with the constraint):\n"
                f"{steering.strip()}"
            )
        if min_chars_to_beat:
            blocks.append(
                "Versus goal: produce a coherent text STRICTLY longer than "
                f"{min_chars_to_beat} characters."
            )
        return "\n\n".join(blocks)

    def build_initial_prompt(self, language: Language) -> str:
        return _INITIAL_PROMPTS[language]

    def build_retry_prompt(
        self,
        language: Language,
        full_text: str,
        last_valid_prefix: str,
        reason: str,
        attempt_index: int,
        max_attempts: int,
    ) -> str:
        """Build the prompt for a hard-mode retry.

        The generator sees the whole failing text, the reason, and a window
        of context on each side of the recovered prefix. An empty prefix
        asks for a fresh start instead of a continuation.
        """
        window = self._context_window_chars
        cut = len(last_valid_prefix)
        before = last_valid_prefix[max(0, cut - window) :]
        after = full_text[cut : cut + window]
        from_scratch = cut == 0

        if language == "fr":
            lines = [
                f"Tentative {attempt_index}/{max_attempts}.",
                "Tu as produit ce texte :",
                '"""',
                full_text,
                '"""',
                "",
                "Ce texte A ÉCHOUÉ car il a violé la contrainte.",
                f"Raison : {reason}",
                "Aucun préfixe valide (l'erreur est arrivée dès le début)."
                if from_scratch
                else f"La dernière portion valide se termine au caractère {cut}.",
                "",
                "Contexte autour de l'erreur :",
                "--- AVANT (valide) ---",
                before or "(vide)",
                "--- APRÈS (invalide) ---",
                after or "(vide)",
                "",
                "Tâche :",
                "1) Recommence depuis zéro, sans reprendre le texte invalide."
                if from_scratch
                else "1) Repars exactement du dernier préfixe valide (ne le répète pas).",
                "2) Écris un nouveau texte cohérent, plus prudent."
                if from_scratch
                else "2) Continue le même texte (même sujet, même ton).",
                "3) Sois prudent : phrases courtes, mots simples.",
                "4) Ne mentionne pas les règles ni le fait que tu corriges.",
                "5) Commence directement par un mot (pas d'espace initial).",
                "Réponds UNIQUEMENT avec la suite à ajouter.",
            ]
        else:
            lines = [
                f"Attempt {attempt_index}/{max_attempts}.",
                "You produced this text:",
                '"""',
                full_text,
                '"""',
                "",
                "It FAILED because it violated the constraint.",
                f"Reason: {reason}",
                "There is no valid prefix (the failure happened immediately)."
                if from_scratch
                else f"The last valid prefix ends at character {cut}.",
                "",
                "Context around the failure:",
                "--- BEFORE (valid) ---",
                before or "(empty)",
                "--- AFTER (invalid) ---",
                after or "(empty)",
                "",
                "Task:",
                "1) Restart from scratch, do NOT reuse the invalid text."
                if from_scratch
                else "1) Start exactly from the last valid prefix ONLY (do not repeat it).",
                "2) Write a new coherent text, more conservative."
                if from_scratch
                else "2) Continue the SAME text (same topic and tone).",
                "3) Be conservative: short sentences, simple low-risk words.",
                "4) Do not mention the rules or that you are correcting.",
                "5) Start directly with a word (no leading whitespace).",
                "Only output the continuation to append.",
            ]
        return "\n".join(lines)

    def build_word_system_prompt(self, constraint: Constraint, language: Language) -> str:
        """System directive for the one-word-per-request protocol."""
        return "\n\n".join(
            [
                "You are La Machine. You write a text ONE word at a time.",
                "Each reply is exactly one word: no punctuation, no quotes, "
                "no explanation.",
                "The word must continue the text coherently.",
                self._language_line(language),
                self._constraint_line(constraint, ""),
            ]
        )

    def build_next_word_prompt(
        self,
        language: Language,
        text: str,
        target_letters: int,
        rejected: list[str] | None = None,
    ) -> str:
        """Ask for the next word with an exact letter count.

        Args:
            language: Output language
            text: Text accepted so far
            target_letters: Required number of letters
            rejected: Candidates already refused for this slot
        """
        rejected = rejected or []
        if language == "fr":
            lines = [
                f"Texte actuel : « {text} »" if text else "Texte actuel : (vide, premier mot)",
                f"Donne le mot suivant. Il doit contenir EXACTEMENT {target_letters} "
                "lettres (les accents ne comptent pas en plus ; pas d'apostrophe, "
                "de trait d'union ni de chiffre).",
            ]
            if rejected:
                lines.append(f"Mots refusés, à éviter : {', '.join(rejected)}.")
            lines.append("Réponds avec ce seul mot.")
        else:
            lines = [
                f'Text so far: "{text}"' if text else "Text so far: (empty, first word)",
                f"Give the next word. It must have EXACTLY {target_letters} letters "
                "(accents add nothing; no apostrophe, hyphen or digit).",
            ]
            if rejected:
                lines.append(f"Rejected words, avoid them: {', '.join(rejected)}.")
            lines.append("Reply with that single word only.")
        return "\n".join(lines)

    def build_messages(self, system: str, prompt: str) -> list[LLMMessage]:
        return [
            LLMMessage(role="system", content=system),
            LLMMessage(role="user", content=prompt),
        ]

    @staticmethod
    def _language_line(language: Language) -> str:
        if language == "fr":
            return "Language: French. Write in French."
        return "Language: English. Write in English."

    @staticmethod
    def _constraint_line(constraint: Constraint, param: str) -> str:
        line = f"Constraint: {constraint.name}: {constraint.description.rstrip('.')}"
        if constraint.parameter.kind != "none" and param:
            line = f"{line}. Parameter: {param}"
        return line
