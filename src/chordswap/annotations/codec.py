"""Per-dialect annotation codec.

Every dialect marks performance notes ("Softly", "Repeat x2") with one fixed
delimiter.  A codec recognises that delimiter, classifies where each note
sits relative to the music, strips the notes out of a text and renders
notes in any dialect's syntax.
"""

import re
from dataclasses import dataclass

from ..models import (
    Annotation,
    AnnotationMatch,
    AnnotationPosition,
    Dialect,
    PlacedAnnotation,
)

# Surface syntax used when writing an annotation in each dialect.
DELIMITERS = {
    Dialect.ONSONG: "*{text}",
    Dialect.SONGBOOK: "({text})",
    Dialect.PCO: "<b>{text}</b>",
    Dialect.CHORDPRO: "{{comment: {text}}}",
    Dialect.GUITAR_TABS: "*{text}",
    Dialect.NASHVILLE: "*{text}",
}

_BLANK_RUN_RE = re.compile(r"\n{3,}")


def render_annotation(text: str, dialect: Dialect) -> str:
    """Write *text* as an annotation in *dialect*: ``("x2", CHORDPRO)`` → ``{comment: x2}``."""
    return DELIMITERS[dialect].format(text=text)


@dataclass(frozen=True)
class AnnotationCodec:
    """Recognise and rewrite one dialect's annotations.

    An annotation alone on its line is ``ABOVE`` the content that follows.
    One sharing its line with music or lyrics gets *shared_position*.
    """

    dialect: Dialect
    pattern: re.Pattern  # group 1 is the annotation text
    shared_position: AnnotationPosition

    def _position_on(self, line: str) -> AnnotationPosition:
        if self.pattern.sub("", line).strip():
            return self.shared_position
        return AnnotationPosition.ABOVE

    def parse(self, text: str) -> list[AnnotationMatch]:
        """Return every annotation in *text* with its character span."""
        results = []
        for m in self.pattern.finditer(text):
            line_start = text.rfind("\n", 0, m.start()) + 1
            line_end = text.find("\n", m.end())
            line = text[line_start:] if line_end == -1 else text[line_start:line_end]
            annotation = Annotation(
                text=m.group(1).strip(),
                dialect=self.dialect,
                position=self._position_on(line),
            )
            results.append(AnnotationMatch(annotation, m.group(0), m.start(), m.end()))
        return results

    def is_valid(self, text: str) -> bool:
        return self.pattern.search(text) is not None

    def convert(self, annotation: Annotation, target: Dialect) -> str:
        return render_annotation(annotation.text, target)

    def extract(self, text: str) -> tuple[str, list[PlacedAnnotation]]:
        """Strip annotations from *text* and anchor each one to a line.

        Returns the annotation-free text and the annotations, each tagged
        with a line index into that text.  ``ABOVE`` annotations point at
        the line they precede (possibly one past the last line); the others
        point at the line they were removed from.  Blank lines that would
        double up where an annotation line was removed are dropped.
        """
        kept: list[str] = []
        placed: list[PlacedAnnotation] = []
        dropped = False  # an annotation-only line was removed since the last kept line

        for line in text.split("\n"):
            matches = list(self.pattern.finditer(line))
            if not matches:
                if dropped and not line.strip() and kept and not kept[-1].strip():
                    continue
                kept.append(line)
                dropped = False
                continue

            remainder = self.pattern.sub("", line).rstrip()
            if remainder.strip():
                kept.append(remainder)
                dropped = False
                position, anchor = self.shared_position, len(kept) - 1
            else:
                dropped = True
                position, anchor = AnnotationPosition.ABOVE, len(kept)
            for m in matches:
                annotation = Annotation(m.group(1).strip(), self.dialect, position)
                placed.append(PlacedAnnotation(annotation, anchor))

        return "\n".join(kept), placed

    def remove(self, text: str) -> str:
        """Strip annotations; three or more newlines in a row become two."""
        return _BLANK_RUN_RE.sub("\n\n", self.extract(text)[0])
