"""Minimal EPUB2 packer.

Layout (everything at the archive root except the container descriptor)::

    mimetype                 stored, never compressed, always first
    META-INF/container.xml   points at content.opf
    content.opf              OPF 2.0 package document
    toc.ncx                  NCX 2005-1 navigation
    chapter1.html ...        one XHTML document per chapter
"""

import io
import re
import zipfile
from dataclasses import dataclass, field
from html import escape as hesc
from pathlib import Path
from typing import List, Sequence, Tuple, Union

from slugify import slugify

from .models import Chapter

MIMETYPE = "application/epub+zip"
OPF_PATH = "content.opf"
NCX_PATH = "toc.ncx"
LANGUAGE = "en"

CONTAINER_XML = f"""<?xml version="1.0"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="{OPF_PATH}" media-type="application/oebps-package+xml"/>
  </rootfiles>
</container>
"""

CHAPTER_CSS = "body { font-family: serif; line-height: 1.5; margin: 2em; }"


def sanitize_filename(name: str) -> str:
    return re.sub(r'[\\/:*?"<>|]+', "_", (name or "").strip()) or "book"


def book_identifier(title: str) -> str:
    return f"urn:webtoepub:{slugify(title) or 'book'}"


@dataclass
class EpubArchive:
    title: str
    entries: List[Tuple[str, bytes]] = field(default_factory=list)

    @property
    def filename(self) -> str:
        return f"{sanitize_filename(self.title)}.epub"

    @property
    def names(self) -> List[str]:
        return [name for name, _ in self.entries]

    def add(self, name: str, data: Union[str, bytes]) -> None:
        if isinstance(data, str):
            data = data.encode("utf-8")
        self.entries.append((name, data))

    def to_bytes(self) -> bytes:
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for name, data in self.entries:
                if name == "mimetype":
                    zf.writestr(name, data, compress_type=zipfile.ZIP_STORED)
                else:
                    zf.writestr(name, data)
        return buf.getvalue()

    def write(self, out_dir: Union[str, Path]) -> Path:
        out_dir = Path(out_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        out_path = out_dir / self.filename
        out_path.write_bytes(self.to_bytes())
        return out_path


def chapter_id(index: int) -> str:
    return f"chapter{index}"


def chapter_xhtml(chapter: Chapter) -> str:
    # the only rewrite applied to scraped markup; &nbsp; is undefined in XML
    body = chapter.content.replace("&nbsp;", " ")
    title = hesc(chapter.title)
    return f"""<?xml version="1.0" encoding="utf-8"?>
<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.1//EN" "http://www.w3.org/TR/xhtml11/DTD/xhtml11.dtd">
<html xmlns="http://www.w3.org/1999/xhtml">
<head>
  <title>{title}</title>
  <style type="text/css">{CHAPTER_CSS}</style>
</head>
<body>
  <h2>{title}</h2>
{body}
</body>
</html>
"""


def package_opf(title: str, author: str, uid: str, count: int) -> str:
    manifest = [f'    <item id="ncx" href="{NCX_PATH}" media-type="application/x-dtbncx+xml"/>']
    spine = []
    for i in range(1, count + 1):
        cid = chapter_id(i)
        manifest.append(f'    <item id="{cid}" href="{cid}.html" media-type="application/xhtml+xml"/>')
        spine.append(f'    <itemref idref="{cid}"/>')
    nl = "\n"
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<package xmlns="http://www.idpf.org/2007/opf" unique-identifier="BookId" version="2.0">
  <metadata xmlns:dc="http://purl.org/dc/elements/1.1/">
    <dc:title>{hesc(title)}</dc:title>
    <dc:creator>{hesc(author)}</dc:creator>
    <dc:language>{LANGUAGE}</dc:language>
    <dc:identifier id="BookId">{hesc(uid)}</dc:identifier>
  </metadata>
  <manifest>
{nl.join(manifest)}
  </manifest>
  <spine toc="ncx">
{nl.join(spine)}
  </spine>
</package>
"""


def toc_ncx(title: str, uid: str, chapters: Sequence[Chapter]) -> str:
    points = []
    for i, ch in enumerate(chapters, start=1):
        points.append(
            f'    <navPoint id="navPoint-{i}" playOrder="{i}">'
            f"<navLabel><text>{hesc(ch.title)}</text></navLabel>"
            f'<content src="{chapter_id(i)}.html"/></navPoint>'
        )
    nl = "\n"
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<ncx xmlns="http://www.daisy.org/z3986/2005/ncx/" version="2005-1">
  <head>
    <meta name="dtb:uid" content="{hesc(uid)}"/>
    <meta name="dtb:depth" content="1"/>
    <meta name="dtb:totalPageCount" content="0"/>
    <meta name="dtb:maxPageNumber" content="0"/>
  </head>
  <docTitle><text>{hesc(title)}</text></docTitle>
  <navMap>
{nl.join(points)}
  </navMap>
</ncx>
"""


def assemble_epub(title: str, author: str, chapters: Sequence[Chapter]) -> EpubArchive:
    """Pack chapters, in order, into an EPUB2 archive."""
    uid = book_identifier(title)
    archive = EpubArchive(title=title)
    archive.add("mimetype", MIMETYPE)
    archive.add("META-INF/container.xml", CONTAINER_XML)
    archive.add(OPF_PATH, package_opf(title, author, uid, len(chapters)))
    archive.add(NCX_PATH, toc_ncx(title, uid, chapters))
    for i, ch in enumerate(chapters, start=1):
        archive.add(f"{chapter_id(i)}.html", chapter_xhtml(ch))
    return archive
