import io
import xml.etree.ElementTree as ET
import zipfile

from ebooklib import epub

from webtoepub.epub_builder import MIMETYPE, assemble_epub, sanitize_filename
from webtoepub.models import Chapter

OPF = "{http://www.idpf.org/2007/opf}"
NCX = "{http://www.daisy.org/z3986/2005/ncx/}"
DC = "{http://purl.org/dc/elements/1.1/}"


def open_zip(archive) -> zipfile.ZipFile:
    return zipfile.ZipFile(io.BytesIO(archive.to_bytes()))


def test_single_chapter_book():
    zf = open_zip(assemble_epub("T", "A", [Chapter("C1", "<p>x</p>")]))

    opf = ET.fromstring(zf.read("content.opf"))
    itemrefs = opf.findall(f"{OPF}spine/{OPF}itemref")
    assert [i.get("idref") for i in itemrefs] == ["chapter1"]
    items = {i.get("id"): i.get("href") for i in opf.findall(f"{OPF}manifest/{OPF}item")}
    assert items == {"ncx": "toc.ncx", "chapter1": "chapter1.html"}
    assert opf.find(f"{OPF}metadata/{DC}title").text == "T"
    assert opf.find(f"{OPF}metadata/{DC}creator").text == "A"
    assert opf.find(f"{OPF}metadata/{DC}language").text == "en"

    ncx = ET.fromstring(zf.read("toc.ncx"))
    points = ncx.findall(f"{NCX}navMap/{NCX}navPoint")
    assert len(points) == 1
    assert points[0].get("playOrder") == "1"
    assert points[0].find(f"{NCX}content").get("src") == "chapter1.html"

    chapter = zf.read("chapter1.html").decode("utf-8")
    assert chapter.index("<h2>C1</h2>") < chapter.index("<p>x</p>")
    assert "<title>C1</title>" in chapter


def test_mimetype_first_and_stored():
    zf = open_zip(assemble_epub("T", "A", [Chapter("C1", "<p>x</p>")]))
    first = zf.infolist()[0]
    assert first.filename == "mimetype"
    assert first.compress_type == zipfile.ZIP_STORED
    assert zf.read("mimetype") == MIMETYPE.encode("ascii")
    assert all(i.compress_type == zipfile.ZIP_DEFLATED for i in zf.infolist()[1:])


def test_entry_layout_for_n_chapters():
    chapters = [Chapter(f"C{i}", f"<p>{i}</p>") for i in range(1, 6)]
    archive = assemble_epub("T", "A", chapters)
    names = open_zip(archive).namelist()

    assert len(names) == len(chapters) + 4
    assert names == archive.names
    assert names[:4] == ["mimetype", "META-INF/container.xml", "content.opf", "toc.ncx"]
    assert names[4:] == [f"chapter{i}.html" for i in range(1, 6)]


def test_spine_and_navmap_follow_chapter_order():
    chapters = [Chapter("Zeta", "<p>z</p>"), Chapter("Alpha", "<p>a</p>"), Chapter("Mu", "<p>m</p>")]
    zf = open_zip(assemble_epub("T", "A", chapters))

    opf = ET.fromstring(zf.read("content.opf"))
    assert [i.get("idref") for i in opf.findall(f"{OPF}spine/{OPF}itemref")] == ["chapter1", "chapter2", "chapter3"]
    ncx = ET.fromstring(zf.read("toc.ncx"))
    points = ncx.findall(f"{NCX}navMap/{NCX}navPoint")
    assert [p.find(f"{NCX}navLabel/{NCX}text").text for p in points] == ["Zeta", "Alpha", "Mu"]
    assert [p.get("playOrder") for p in points] == ["1", "2", "3"]
    assert "<p>a</p>" in zf.read("chapter2.html").decode("utf-8")


def test_nbsp_is_the_only_rewrite():
    raw = '<p>a&nbsp;b&nbsp;&nbsp;c</p><hr class="page-break" /><p>&amp; <b>bold</b></p>'
    text = open_zip(assemble_epub("T", "A", [Chapter("C", raw)])).read("chapter1.html").decode("utf-8")
    assert '<p>a b  c</p><hr class="page-break" /><p>&amp; <b>bold</b></p>' in text


def test_titles_are_escaped_in_xml():
    zf = open_zip(assemble_epub("Tom & Jerry <3", "A&B", [Chapter("One & Two", "<p>x</p>")]))
    opf = ET.fromstring(zf.read("content.opf"))
    assert opf.find(f"{OPF}metadata/{DC}title").text == "Tom & Jerry <3"
    ncx = ET.fromstring(zf.read("toc.ncx"))
    assert ncx.find(f"{NCX}navMap/{NCX}navPoint/{NCX}navLabel/{NCX}text").text == "One & Two"
    assert "<h2>One &amp; Two</h2>" in zf.read("chapter1.html").decode("utf-8")


def test_identifier_shared_by_opf_and_ncx():
    zf = open_zip(assemble_epub("My Story", "A", [Chapter("C", "<p>x</p>")]))
    opf = ET.fromstring(zf.read("content.opf"))
    assert opf.get("unique-identifier") == "BookId"
    ident = opf.find(f"{OPF}metadata/{DC}identifier")
    assert ident.get("id") == "BookId"
    assert ident.text == "urn:webtoepub:my-story"
    ncx = ET.fromstring(zf.read("toc.ncx"))
    uid = [m.get("content") for m in ncx.findall(f"{NCX}head/{NCX}meta") if m.get("name") == "dtb:uid"]
    assert uid == [ident.text]


def test_filename_and_write(tmp_path):
    archive = assemble_epub("Who/What: A Tale?", "A", [Chapter("C", "<p>x</p>")])
    assert archive.filename == "Who_What_ A Tale_.epub"
    path = archive.write(tmp_path / "out")
    assert path == tmp_path / "out" / archive.filename
    assert path.read_bytes()[:2] == b"PK"
    assert sanitize_filename("   ") == "book"


def test_readable_by_ebooklib(tmp_path):
    chapters = [Chapter("C1", "<p>x</p>"), Chapter("C2", "<p>y</p>")]
    path = assemble_epub("T", "A", chapters).write(tmp_path)

    book = epub.read_epub(str(path), {"ignore_ncx": False})
    assert book.get_metadata("DC", "title")[0][0] == "T"
    assert book.get_metadata("DC", "creator")[0][0] == "A"
    assert [idref for idref, _ in book.spine] == ["chapter1", "chapter2"]
    assert b"<p>y</p>" in book.get_item_with_href("chapter2.html").get_content()
