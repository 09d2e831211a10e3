"""
Inline HTML documents shaped like the Studierendenwerk Aachen pages.
"""

MENU_HTML = """
<html><body>
<div id="speiseplan">
  <h3 class="default-headline"><a href="#">Montag, 16.02.2026</a></h3>
  <div class="default-panel">
    <table class="menues">
      <tbody>
        <tr class="odd Tellergericht vegan bg-color">
          <td class="menue-wrapper">
            <span class="menue-item menue-category">Tellergericht</span>
            <span class="menue-item menue-desc">
              <span class="expand-nutr">Linsencurry <sup>A,F</sup> mit Reis</span>
            </span>
            <span class="menue-item menue-price large-price">3,50 €</span>
          </td>
        </tr>
      </tbody>
    </table>
    <table class="extras">
      <tbody>
        <tr>
          <td class="menue-wrapper">
            <span class="menue-item menue-category">Hauptbeilagen</span>
            <span class="menue-item menue-desc">Pommes frites<span class="seperator">oder</span>Salzkartoffeln</span>
          </td>
        </tr>
      </tbody>
    </table>
  </div>

  <h3 class="active-headline"><a href="#">Dienstag, 17.02.2026</a></h3>
  <div class="active-panel">
    <table class="menues">
      <tbody>
        <tr class="even Klassiker Schwein bg-color">
          <td class="menue-wrapper">
            <span class="menue-item menue-category">Klassiker</span>
            <span class="menue-item menue-desc">
              <span class="expand-nutr">Schnitzel mit Pilzrahmsauce</span>
            </span>
          </td>
        </tr>
      </tbody>
    </table>
    <table class="extras">
      <tbody>
        <tr>
          <td class="menue-wrapper">
            <span class="menue-item menue-category">Nebenbeilage</span>
            <span class="menue-item menue-desc">Brokkoli<span class="seperator">oder</span>Tagessalat</span>
          </td>
        </tr>
      </tbody>
    </table>
  </div>
</div>
</body></html>
"""

# second week: Wednesday only
MENU_HTML_NEXT = """
<html><body>
  <h3 class="default-headline"><a href="#">Mittwoch, 18.02.2026</a></h3>
  <div class="default-panel">
    <table class="menues">
      <tbody>
        <tr class="odd Vegetarisch bg-color">
          <td class="menue-wrapper">
            <span class="menue-item menue-category">Vegetarisch</span>
            <span class="menue-item menue-desc"><span class="expand-nutr">Gemüselasagne</span></span>
            <span class="menue-item menue-price">2,90 €</span>
          </td>
        </tr>
      </tbody>
    </table>
  </div>
</body></html>
"""

OPENING_HOURS_HTML = """
<html><body>
  <div class="opening-hours">   </div>
  <div class="opening-hours">
    <p>Mo.–Fr. 11:30–14:30</p>
    <p>Sa. 11:30–14:00</p>
  </div>
  <div class="opening-hours">
    <p>Vorlesungsfreie Zeit: Mo.–Do. 11:30–14:00</p>
  </div>
</body></html>
"""
