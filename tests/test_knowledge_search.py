from tadbeer.services.ai.knowledge import chunk_text, search_knowledge, tokenize


def test_tokenize_lowercases_and_caps():
    assert tokenize("Reset VPN, password!") == ["reset", "vpn", "password"]
    assert len(tokenize(" ".join(f"w{i}" for i in range(50)))) == 30


def test_chunks_overlap():
    text = "".join(str(i % 10) for i in range(2000))
    chunks = chunk_text(text, size=900, overlap=120)

    assert [len(c) for c in chunks] == [900, 900, 440]
    assert chunks[0][-120:] == chunks[1][:120]
    assert chunk_text("") == []


def test_search_ranks_best_match_first(tmp_path):
    (tmp_path / "vpn.md").write_text("How to reset the VPN password for remote access.")
    (tmp_path / "printer.md").write_text("Printer toner replacement guide.")
    (tmp_path / "mixed.txt").write_text("VPN client download page.")

    hits = search_knowledge("reset vpn password", roots=[str(tmp_path)])

    assert hits[0]["file"].endswith("vpn.md")
    assert hits[0]["score"] == 6
    assert all(not h["file"].endswith("printer.md") for h in hits)


def test_search_skips_env_files_and_unknown_types(tmp_path):
    (tmp_path / ".env").write_text("VPN_PASSWORD=hunter2")
    (tmp_path / "prod.env.md").write_text("vpn secrets")
    (tmp_path / "diagram.png").write_bytes(b"vpn")
    cache = tmp_path / "__pycache__"
    cache.mkdir()
    (cache / "notes.md").write_text("vpn")

    assert search_knowledge("vpn", roots=[str(tmp_path)]) == []


def test_search_respects_max_hits_and_missing_roots(tmp_path):
    for i in range(5):
        (tmp_path / f"doc{i}.md").write_text("service desk hours")

    assert len(search_knowledge("desk", roots=[str(tmp_path)], max_hits=2)) == 2
    assert search_knowledge("desk", roots=[str(tmp_path / "missing")]) == []
