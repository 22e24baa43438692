"""
Copy tables for share card metadata.

The resolver never hard-codes copy: it reads a `SiteCopy` instance, so a
content source can supply its own tables. `DEFAULT_COPY` holds the bundled
English copy plus the per-locale overrides shipped with the site.

`{{appName}}` is replaced with the configured site name at resolve time.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from settings import settings

APP_NAME_TOKEN = "{{appName}}"
DEFAULT_DESCRIPTION = "Plan smarter trips with timeline + map routing and share them beautifully."
BLOG_IMAGE_PREFIX = "/images/blog/"
# Bump when blog side-panel images are regenerated.
BLOG_IMAGE_REVISION = "2026-02-10-01"
DEFAULT_BLOG_TINT = "#6366f1"
DEFAULT_BLOG_TINT_INTENSITY = 60
DEFAULT_ROBOTS = "index,follow,max-image-preview:large"
ADMIN_ROBOTS = "noindex,nofollow,max-image-preview:large"


@dataclass(frozen=True)
class PageDefinition:
    title: str
    description: str
    og_title: Optional[str] = None
    og_description: Optional[str] = None
    robots: Optional[str] = None
    pill: Optional[str] = None
    blog_image: Optional[str] = None
    blog_tint: Optional[str] = None
    blog_tint_intensity: Optional[int] = None
    example_template_id: Optional[str] = None
    example_duration_days: int = 0
    example_city_count: int = 0
    example_map_image: Optional[str] = None


@dataclass(frozen=True)
class BlogCopy:
    title: str
    description: str
    og_title: Optional[str] = None
    og_description: Optional[str] = None


@dataclass
class SiteCopy:
    pages: Dict[str, PageDefinition] = field(default_factory=dict)
    # base path -> locale -> overridden fields (title/description/og_title/og_description/pill)
    localized_pages: Dict[str, Dict[str, Dict[str, str]]] = field(default_factory=dict)
    blogs: Dict[str, BlogCopy] = field(default_factory=dict)
    # Locales a blog post is written in; unlisted posts exist in the default locale only.
    blog_locales: Dict[str, List[str]] = field(default_factory=dict)
    # locale -> (title, description, pill); "{country}" is substituted.
    country_pages: Dict[str, Tuple[str, str, str]] = field(default_factory=dict)
    default_description: str = DEFAULT_DESCRIPTION


def apply_app_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.replace(APP_NAME_TOKEN, settings.SITE_NAME)


def blog_image_path(slug: str) -> str:
    return f"{BLOG_IMAGE_PREFIX}{slug}-og-vertical.jpg"


_PAGES: Dict[str, PageDefinition] = {
    "/": PageDefinition(
        title="{{appName}}",
        description="Plan smarter trips with timeline + map routing and share them beautifully.",
        pill="{{appName}}",
    ),
    "/create-trip": PageDefinition(
        title="Create Trip",
        description="Build your itinerary with flexible stops, routes, and timeline planning.",
        pill="TRIP PLANNER",
    ),
    "/features": PageDefinition(
        title="Features",
        description="See everything {{appName}} offers for planning and sharing better adventures.",
        pill="FEATURES",
    ),
    "/updates": PageDefinition(
        title="Product Updates",
        description="Catch the latest {{appName}} improvements and recently shipped features.",
        pill="PRODUCT UPDATES",
    ),
    "/blog": PageDefinition(
        title="{{appName}} Blog",
        description="Guides, trip-planning ideas, and practical workflow tips from the {{appName}} team.",
        pill="BLOG",
    ),
    "/login": PageDefinition(
        title="Login",
        description="Sign in and continue planning your next trip in {{appName}}.",
    ),
    "/contact": PageDefinition(
        title="Contact",
        description="Contact the team behind {{appName}} for support, bug reports, partnerships, or translation feedback.",
    ),
    "/imprint": PageDefinition(
        title="Imprint",
        description="Legal notice and provider identification for {{appName}}.",
    ),
    "/privacy": PageDefinition(
        title="Privacy Policy",
        description="Learn how {{appName}} handles personal data and privacy protection.",
    ),
    "/terms": PageDefinition(
        title="Terms of Service",
        description="Read the terms that govern the use of {{appName}}.",
    ),
    "/cookies": PageDefinition(
        title="Cookie Policy",
        description="Understand how {{appName}} uses cookies and similar technologies.",
    ),
    "/inspirations": PageDefinition(
        title="Where Will You Go Next?",
        description="Browse curated trip ideas by theme, month, country, or upcoming festivals.",
        pill="TRIP INSPIRATIONS",
    ),
    "/inspirations/themes": PageDefinition(
        title="Travel by Theme",
        description="Find curated trip ideas that match your travel style: adventure, food, photography, and more.",
        pill="TRIP INSPIRATIONS",
    ),
    "/inspirations/best-time-to-travel": PageDefinition(
        title="When to Go Where",
        description="Month-by-month guide to the best time to visit destinations around the world.",
        pill="TRIP INSPIRATIONS",
    ),
    "/inspirations/countries": PageDefinition(
        title="Explore by Country",
        description="Country-specific travel guides with best-month picks, top cities, and local tips.",
        pill="TRIP INSPIRATIONS",
    ),
    "/inspirations/events-and-festivals": PageDefinition(
        title="Plan Around a Festival",
        description="Discover upcoming festivals and build your itinerary around the event.",
        pill="TRIP INSPIRATIONS",
    ),
    "/inspirations/weekend-getaways": PageDefinition(
        title="Quick Escapes for Busy Travelers",
        description="2-3 day getaway ideas for spontaneous adventurers. Pack light and make the most of a long weekend.",
        pill="TRIP INSPIRATIONS",
    ),
    "/pricing": PageDefinition(
        title="Simple, Transparent Pricing",
        description="Start for free and upgrade when you need more. No hidden fees, cancel anytime.",
        pill="PRICING",
    ),
    "/faq": PageDefinition(
        title="Frequently Asked Questions",
        description="Answers to common questions about {{appName}}, pricing, and trip sharing.",
        pill="FAQ",
    ),
    "/share-unavailable": PageDefinition(
        title="Shared Trip Unavailable",
        description="The shared trip link is unavailable or expired.",
    ),
}

_LOCALIZED_PAGES: Dict[str, Dict[str, Dict[str, str]]] = {
    "/": {
        "es": {"description": "Planifica viajes de forma más inteligente con línea de tiempo y mapa, y compártelos fácilmente."},
        "de": {"description": "Plane smartere Reisen mit Timeline und Karte und teile sie einfach."},
        "fr": {"description": "Planifiez des voyages plus malins avec timeline et carte, puis partagez-les facilement."},
        "it": {"description": "Pianifica viaggi migliori con timeline e mappa e condividili facilmente."},
        "ru": {"description": "Планируйте поездки умнее с таймлайном и картой и делитесь ими без лишних шагов."},
        "pt": {"description": "Plane viagens de forma mais inteligente com linha do tempo e mapa, e partilhe tudo com facilidade."},
        "pl": {"description": "Planuj podróże sprytniej dzięki osi czasu i mapie, a potem łatwo je udostępniaj."},
        "fa": {"description": "سفرها را هوشمندتر برنامه‌ریزی کنید؛ با تایم‌لاین و مسیرهای نقشه، و آن‌ها را زیبا به اشتراک بگذارید."},
        "ur": {"description": "سفر زیادہ سمجھ داری سے پلان کریں؛ ٹائم لائن اور نقشے کی روٹنگ کے ساتھ، اور انہیں خوبصورتی سے شیئر کریں۔"},
    },
    "/create-trip": {
        "es": {"title": "Crear viaje", "description": "Crea tu itinerario con paradas flexibles, rutas y planificación por línea de tiempo.", "pill": "PLANIFICADOR DE VIAJES"},
        "de": {"title": "Reise erstellen", "description": "Erstelle deine Reiseroute mit flexiblen Stopps, Routen und Planung auf der Timeline.", "pill": "REISEPLANER"},
        "fr": {"title": "Créer un voyage", "description": "Créez votre itinéraire avec des étapes flexibles, des routes et une planification sur la timeline.", "pill": "PLANIFICATEUR DE VOYAGE"},
        "it": {"title": "Crea viaggio", "description": "Crea il tuo itinerario con tappe flessibili, percorsi e pianificazione su timeline.", "pill": "PIANIFICATORE VIAGGI"},
        "ru": {"title": "Создать поездку", "description": "Соберите маршрут с гибкими остановками, продуманными путями и планированием по таймлайну.", "pill": "ПЛАНИРОВЩИК ПУТЕШЕСТВИЙ"},
        "pt": {"title": "Criar viagem", "description": "Crie o seu itinerário com paragens flexíveis, rotas e planeamento em linha do tempo.", "pill": "PLANEADOR DE VIAGENS"},
        "pl": {"title": "Utwórz podróż", "description": "Zbuduj plan podróży z elastycznymi przystankami, trasami i planowaniem na osi czasu.", "pill": "PLANER PODRÓŻY"},
        "fa": {"title": "ساخت سفر", "description": "برنامه سفر خود را با توقف‌های منعطف، مسیرها و برنامه‌ریزی روی تایم‌لاین بسازید.", "pill": "برنامه‌ریز سفر"},
        "ur": {"title": "سفر بنائیں", "description": "اپنا سفرنامہ لچکدار اسٹاپس، روٹس اور ٹائم لائن پلاننگ کے ساتھ بنائیں۔", "pill": "ٹریول پلانر"},
    },
    "/features": {
        "es": {"title": "Funciones", "description": "Descubre todo lo que {{appName}} ofrece para planificar y compartir mejores viajes."},
        "de": {"title": "Funktionen", "description": "Entdecke alle Funktionen von {{appName}} für bessere Reiseplanung."},
        "fr": {"title": "Fonctionnalités", "description": "Découvrez toutes les fonctionnalités de {{appName}} pour mieux planifier vos voyages."},
        "it": {"title": "Funzionalità", "description": "Scopri tutte le funzionalità di {{appName}} per pianificare viaggi migliori."},
        "ru": {"title": "Возможности", "description": "Узнайте, как {{appName}} помогает планировать поездки удобнее и быстрее."},
        "pt": {"title": "Funcionalidades", "description": "Descubra tudo o que o {{appName}} oferece para planear e partilhar melhores viagens."},
        "pl": {"title": "Funkcje", "description": "Sprawdź wszystko, co {{appName}} oferuje do lepszego planowania i udostępniania podróży."},
        "fa": {"title": "ویژگی‌ها", "description": "همه قابلیت‌های {{appName}} برای برنامه‌ریزی و اشتراک‌گذاری سفرهای بهتر را ببینید."},
        "ur": {"title": "فیچرز", "description": "{{appName}} کی تمام خصوصیات دیکھیں جو بہتر سفر پلاننگ اور شیئرنگ میں مدد دیتی ہیں۔"},
    },
    "/updates": {
        "es": {"title": "Novedades del producto", "description": "Sigue las últimas mejoras y funcionalidades lanzadas en {{appName}}."},
        "de": {"title": "Neuigkeiten", "description": "Alle neuen Verbesserungen und veröffentlichten Funktionen in {{appName}}."},
        "fr": {"title": "Nouveautés", "description": "Les dernières améliorations et fonctionnalités publiées dans {{appName}}."},
        "it": {"title": "Novità", "description": "Tutti gli ultimi miglioramenti e le funzionalità rilasciate in {{appName}}."},
        "pt": {"title": "Novidades do produto", "description": "Acompanhe as melhorias mais recentes e as funcionalidades lançadas no {{appName}}."},
        "pl": {"title": "Nowości produktu", "description": "Sprawdź najnowsze usprawnienia i funkcje wdrożone w {{appName}}."},
    },
    "/blog": {
        "es": {"title": "Blog", "description": "Guías y consejos prácticos para planificar mejores viajes con {{appName}}."},
        "de": {"title": "Blog", "description": "Guides und Tipps für smartere Reiseplanung mit {{appName}}."},
        "fr": {"title": "Blog", "description": "Guides et conseils pratiques pour mieux planifier vos voyages avec {{appName}}."},
        "it": {"title": "Blog", "description": "Guide e consigli pratici per pianificare meglio i viaggi con {{appName}}."},
        "ru": {"title": "Блог", "description": "Гайды и советы по планированию поездок с {{appName}}."},
        "pt": {"title": "Blog", "description": "Guias e dicas práticas para planear viagens melhores com o {{appName}}."},
        "pl": {"title": "Blog", "description": "Poradniki i praktyczne wskazówki, które pomagają lepiej planować podróże z {{appName}}."},
        "fa": {"title": "وبلاگ", "description": "راهنماها و نکته‌های کاربردی برای برنامه‌ریزی سفر بهتر با {{appName}}."},
        "ur": {"title": "بلاگ", "description": "{{appName}} کے ساتھ بہتر سفر پلاننگ کے لیے گائیڈز اور عملی مشورے۔"},
    },
    "/pricing": {
        "es": {"title": "Precios", "description": "Empieza gratis y mejora cuando lo necesites. Transparente y sin costes ocultos."},
        "de": {"title": "Preise", "description": "Starte kostenlos und upgrade bei Bedarf. Transparent und ohne versteckte Kosten."},
        "fr": {"title": "Tarifs", "description": "Commencez gratuitement et passez a une offre superieure si besoin. Sans frais caches."},
        "it": {"title": "Prezzi", "description": "Inizia gratis e passa a un piano superiore quando serve. Nessun costo nascosto."},
        "pt": {"title": "Preços", "description": "Comece grátis e faça upgrade quando precisar. Transparente e sem custos escondidos."},
        "pl": {"title": "Cennik", "description": "Zacznij za darmo i przejdź na wyższy plan, gdy będzie potrzeba. Bez ukrytych opłat."},
    },
    "/faq": {
        "es": {"title": "Preguntas frecuentes", "description": "Respuestas a preguntas comunes sobre {{appName}}, precios y viajes compartidos."},
        "de": {"title": "FAQ", "description": "Antworten auf häufige Fragen zu {{appName}}, Preisen und Teilen von Reisen."},
        "fr": {"title": "FAQ", "description": "Réponses aux questions fréquentes sur {{appName}}, les tarifs et le partage de voyages."},
        "pt": {"title": "Perguntas frequentes", "description": "Respostas às perguntas mais comuns sobre {{appName}}, preços e partilha de viagens."},
    },
    "/inspirations": {
        "es": {"title": "¿A dónde viajarás después?", "description": "Explora ideas de viaje por temática, mes, país o festivales próximos.", "pill": "INSPIRACIÓN DE VIAJES"},
        "de": {"title": "Wohin geht es als Nächstes?", "description": "Entdecke kuratierte Reiseideen nach Thema, Monat, Land oder kommenden Festivals.", "pill": "REISEINSPIRATIONEN"},
        "fr": {"title": "Où partirez-vous ensuite ?", "description": "Explorez des idées de voyages par thème, mois, pays ou festivals à venir.", "pill": "INSPIRATIONS"},
        "it": {"title": "Dove andrai la prossima volta?", "description": "Esplora idee di viaggio per tema, mese, paese o festival in arrivo.", "pill": "ISPIRAZIONI"},
        "ru": {"title": "Куда поедете в следующий раз?", "description": "Смотрите идеи маршрутов по темам, месяцам, странам и ближайшим фестивалям.", "pill": "ИДЕИ ПУТЕШЕСТВИЙ"},
        "pt": {"title": "Para onde vai a seguir?", "description": "Explore ideias de viagem por tema, mês, país ou festivais que estão a chegar.", "pill": "INSPIRAÇÃO DE VIAGENS"},
        "pl": {"title": "Dokąd wybierzesz się następnym razem?", "description": "Przeglądaj pomysły na podróże według motywu, miesiąca, kraju lub nadchodzących festiwali.", "pill": "INSPIRACJE PODRÓŻNICZE"},
        "fa": {"title": "سفر بعدی کجاست؟", "description": "ایده‌های سفر را بر اساس موضوع، ماه، کشور یا جشنواره‌های پیش رو مرور کنید.", "pill": "الهام سفر"},
        "ur": {"title": "اگلا سفر کہاں؟", "description": "موضوع، مہینے، ملک یا آنے والے فیسٹیولز کے حساب سے سفر کے آئیڈیاز دیکھیں۔", "pill": "ٹریول انسپیریشن"},
    },
    "/inspirations/themes": {
        "es": {"title": "Viajar por temática"},
        "de": {"title": "Nach Reisethema planen"},
        "fr": {"title": "Voyager par thème"},
        "it": {"title": "Viaggia per tema"},
        "pt": {"title": "Viajar por tema"},
        "pl": {"title": "Podróże według motywu"},
    },
    "/inspirations/countries": {
        "es": {"title": "Explorar destinos por país"},
        "de": {"title": "Reiseziele nach Ländern entdecken"},
        "fr": {"title": "Explorer les destinations par pays"},
        "it": {"title": "Esplora destinazioni per paese"},
        "pt": {"title": "Explorar destinos por país"},
        "pl": {"title": "Odkrywaj kierunki według kraju"},
    },
}

_BLOGS: Dict[str, BlogCopy] = {
    "best-time-visit-japan": BlogCopy(
        title="The Best Time to Visit Japan: A Month-by-Month Guide",
        description="Japan transforms with every season. From cherry blossoms to powder snow, here's when to go.",
        og_title="Best Time to Visit Japan, Month by Month",
        og_description="Sakura, festivals, autumn foliage, and powder snow. Find your perfect month to visit Japan.",
    ),
    "budget-travel-europe": BlogCopy(
        title="Budget Travel Hacks for Europe",
        description="Smart timing, local habits, and a few practical tricks can cut your Europe costs in half.",
        og_description="Spend less, see more. Practical tips on timing, transport, and staying smart across Europe.",
    ),
    "festival-travel-guide": BlogCopy(
        title="How to Plan a Trip Around a Festival",
        description="Festival-centered trips are some of the most memorable journeys. Here's how to plan one.",
        og_description="Build your next trip around a great event, from choosing the festival to planning the days around it.",
    ),
    "how-to-plan-multi-city-trip": BlogCopy(
        title="How to Plan the Perfect Multi-City Trip",
        description="Practical advice on route planning, timing, and logistics for multi-destination travel.",
        og_description="Plan a smooth multi-stop itinerary with smart routing, realistic timing, and less stress.",
    ),
    "weekend-getaway-tips": BlogCopy(
        title="Weekend Getaway Planning: From Idea to Boarding Pass",
        description="How to squeeze the most out of a 2-3 day trip without the stress.",
        og_title="Weekend Getaway Planning Made Simple",
        og_description="Make every hour count on a 2-3 day escape. Quick to plan, easy to enjoy.",
    ),
}

_COUNTRY_PAGES: Dict[str, Tuple[str, str, str]] = {
    "en": (
        "Travel to {country}",
        "Plan your trip to {country} - best months, itineraries, and tips.",
        "TRIP INSPIRATIONS",
    ),
    "es": (
        "Viajar a {country}",
        "Todo lo que necesitas para planificar tu viaje a {country}: mejores meses, itinerarios populares y consejos útiles.",
        "INSPIRACIÓN DE VIAJES",
    ),
    "de": (
        "Reise nach {country}",
        "Plane deine Reise nach {country} - beste Reisezeit, beliebte Routen und praktische Tipps.",
        "REISEINSPIRATIONEN",
    ),
    "fr": (
        "Voyager en {country}",
        "Tout pour planifier votre voyage en {country} : meilleures periodes, itinéraires populaires et conseils utiles.",
        "INSPIRATIONS",
    ),
    "it": (
        "Viaggia in {country}",
        "Tutto ciò che serve per pianificare un viaggio in {country}: periodi migliori, itinerari popolari e consigli utili.",
        "ISPIRAZIONI",
    ),
    "ru": (
        "Путешествие в {country}",
        "Все для планирования поездки в {country}: лучшие месяцы, популярные маршруты и полезные советы.",
        "ИДЕИ ПУТЕШЕСТВИЙ",
    ),
    "pt": (
        "Viajar para {country}",
        "Tudo o que precisa para planear a sua viagem a {country}: melhores meses, roteiros populares e dicas úteis.",
        "INSPIRAÇÃO DE VIAGENS",
    ),
    "pl": (
        "Podróż do {country}",
        "Wszystko, czego potrzebujesz, aby zaplanować podróż do {country}: najlepsze miesiące, popularne trasy i praktyczne wskazówki.",
        "INSPIRACJE PODRÓŻNICZE",
    ),
    "fa": (
        "سفر به {country}",
        "هرآنچه برای برنامه‌ریزی سفر به {country} نیاز دارید: بهترین ماه‌ها، مسیرهای محبوب و نکته‌های کاربردی.",
        "الهام سفر",
    ),
    "ur": (
        "{country} کا سفر",
        "{country} کے سفر کی منصوبہ بندی کے لیے درکار سب کچھ: بہترین مہینے، مقبول راستے اور مفید مشورے۔",
        "ٹریول انسپیریشن",
    ),
}

DEFAULT_COPY = SiteCopy(
    pages=_PAGES,
    localized_pages=_LOCALIZED_PAGES,
    blogs=_BLOGS,
    blog_locales={slug: ["en"] for slug in _BLOGS},
    country_pages=_COUNTRY_PAGES,
)
