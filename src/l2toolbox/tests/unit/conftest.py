import pytest
from pathlib import Path

EN_GB_FTL = """\
language-name = English (Great Britain)
select-language = Select language
save-button = Save
fallback-key = Fallback translation available
greeting = Hello, { $name }!
menu-title = Menu
tabs-open = { $tabCount ->
    [one] One tab open
   *[other] { $tabCount } tabs open
}
"""

PL_PL_FTL = """\
language-name = Polski
select-language = Wybierz język
save-button = Zapisz
greeting = Cześć, { $name }!
menu-title =
    .tooltip = Menu główne
tabs-open = { $tabCount ->
    [one] Otwarta jedna karta
    [few] Otwarte { $tabCount } karty
   *[many] Otwartych { $tabCount } kart
}
"""


@pytest.fixture
def languages_dir(tmp_path):
    """Provides a Languages directory holding en-GB and pl-PL resources."""
    path = tmp_path / "Languages"
    path.mkdir()
    (path / "en-GB.ftl").write_text(EN_GB_FTL, encoding="utf-8")
    (path / "pl-PL.ftl").write_text(PL_PL_FTL, encoding="utf-8")
    return path


@pytest.fixture
def shipped_languages_dir():
    """The Languages directory shipped at the repository root."""
    return Path(__file__).parents[4] / "Languages"
