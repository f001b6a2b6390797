"""Shared fixtures: a small landing page and the content document that matches it."""

import pytest

from content_sync.core.models import (
    BannerContent,
    BannerSection,
    Button,
    ContactContent,
    ContactSection,
    ContentDocument,
    ContentMetadata,
    ContentSection,
    ContentSectionContent,
    Event,
    EventsContent,
    EventsSection,
    FAQContent,
    FAQItem,
    FAQSection,
    FooterContent,
    FooterSection,
    FormContent,
    FormSection,
    HeroContent,
    HeroSection,
    InfoContent,
    InfoItem,
    InfoSection,
    TeamContent,
    TeamMember,
    TeamSection,
)

SAMPLE_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>Community Meetups</title>
<meta name="description" content="Monthly meetups for carers">
<meta property="og:title" content="Community Meetups">
<meta property="og:description" content="Monthly meetups for carers">
</head>
<body>
<header class="hero">
  <img class="logo" src="logo.png" alt="Meetup logo">
  <h1>Welcome to the meetups</h1>
  <p>A place to share and learn</p>
  <a class="btn-primary-large" href="#events">Reserve a seat</a>
  <p class="urgency-text">Only a few seats left</p>
</header>
<div class="next-event-banner"><strong>Next meetup: 12 March</strong> <span class="countdown">in 5 days</span></div>
<section class="intro">
  <h2>About us</h2>
  <p>We meet once a month.</p>
  <p>Everyone is welcome.</p>
  <p>Coffee is on us.</p>
</section>
<section class="team">
  <h2>Facilitators</h2>
  <div class="facilitator-grid">
    <div class="facilitator">
      <img class="facilitator-photo" src="anna.jpg" alt="Anna">
      <h3>Anna</h3>
      <p class="facilitator-role">Host</p>
      <p class="facilitator-bio">Anna has hosted since 2019.</p>
    </div>
    <div class="facilitator">
      <img class="facilitator-photo" src="ben.jpg" alt="Ben">
      <h3>Ben</h3>
      <p class="facilitator-role">Coach</p>
      <p class="facilitator-bio">Ben coaches new carers.</p>
    </div>
  </div>
</section>
<section class="events">
  <h2>Upcoming meetups</h2>
  <div class="event-grid">
    <div class="event-card featured">
      <span class="featured-badge">Featured</span>
      <h3>Spring meetup</h3>
      <p class="event-date">📅 12 March 2025</p>
      <p class="availability">5 seats left</p>
      <a class="btn-reserve" href="https://tickets.example.org/1">Reserve</a>
    </div>
    <div class="event-card">
      <span class="featured-badge" style="display: none">Featured</span>
      <h3>Summer meetup</h3>
      <p class="event-date">📅 18 June 2025</p>
      <p class="availability">12 seats left</p>
      <a class="btn-reserve" href="https://tickets.example.org/2">Reserve</a>
    </div>
    <div class="event-card">
      <span class="featured-badge" style="display: none">Featured</span>
      <h3>Autumn meetup</h3>
      <p class="event-date">📅 24 September 2025</p>
      <p class="availability">Fully booked</p>
      <a class="btn-reserve" href="https://tickets.example.org/3">Reserve</a>
    </div>
  </div>
</section>
<section class="newsletter">
  <h2>Newsletter</h2>
  <p>One email a month, no more.</p>
  <form class="newsletter-form"><input type="email" name="email"><button type="submit">Subscribe</button></form>
  <p class="privacy-note">We never share your address.</p>
</section>
<section class="info">
  <h2>Practical info</h2>
  <div class="info-list">
    <div class="info-item"><strong>📍 Location</strong><p>Main Street 1<br>Springfield</p></div>
    <div class="info-item"><strong>🕐 Time</strong><p>19:00 - 21:00</p></div>
    <div class="info-item"><strong>💶 Cost</strong><p>Free</p></div>
  </div>
  <div class="location-details">
    <h3>How to get there</h3>
    <div class="map-container"><iframe src="https://maps.example.org/embed?q=main+street"></iframe></div>
    <p class="directions"><strong>By bus:</strong> line 5 to Central</p>
  </div>
</section>
<section class="faq">
  <h2>Questions</h2>
  <div class="faq-list">
    <div class="faq-item"><h3 class="faq-question">Do I need to register?</h3><p class="faq-answer">Yes, seats are limited.</p></div>
    <div class="faq-item"><h3 class="faq-question">Is it free?</h3><p class="faq-answer">Yes.</p></div>
    <div class="faq-item"><h3 class="faq-question">Can I bring a friend?</h3><p class="faq-answer">Of course.</p></div>
  </div>
</section>
<section class="contact">
  <h2>Contact</h2>
  <p>Questions? Get in touch.</p>
  <div class="contact-buttons">
    <a class="btn btn-contact" href="mailto:hello@example.org">✉️ Email us</a>
    <a class="btn btn-contact" href="tel:+3100000000">📞 Call us</a>
  </div>
</section>
<footer>
  <p>© 2025 Community Meetups</p>
  <p>hello@example.org</p>
</footer>
</body>
</html>
"""


def make_sample_content() -> ContentDocument:
    """Content that is already present in SAMPLE_HTML, value for value."""
    return ContentDocument(
        metadata=ContentMetadata(
            title="Community Meetups",
            description="Monthly meetups for carers",
            last_modified="2025-01-01T00:00:00Z",
        ),
        sections=[
            HeroSection(
                id="hero",
                label="Hero",
                selector="header.hero",
                content=HeroContent(
                    heading="Welcome to the meetups",
                    subheading="A place to share and learn",
                    cta_text="Reserve a seat",
                    cta_url="#events",
                    urgency_text="Only a few seats left",
                    logo_alt="Meetup logo",
                ),
            ),
            BannerSection(
                id="next-event",
                label="Next event",
                selector=".next-event-banner",
                content=BannerContent(heading="Next meetup: 12 March", subtitle="in 5 days"),
            ),
            ContentSection(
                id="intro",
                label="Intro",
                selector=".intro",
                content=ContentSectionContent(
                    heading="About us",
                    paragraphs=["We meet once a month.", "Everyone is welcome.", "Coffee is on us."],
                ),
            ),
            TeamSection(
                id="team",
                label="Team",
                selector=".team",
                content=TeamContent(
                    heading="Facilitators",
                    members=[
                        TeamMember(name="Anna", role="Host", bio="Anna has hosted since 2019.",
                                   photo="anna.jpg", photo_alt="Anna"),
                        TeamMember(name="Ben", role="Coach", bio="Ben coaches new carers.",
                                   photo="ben.jpg", photo_alt="Ben"),
                    ],
                ),
            ),
            EventsSection(
                id="events",
                label="Events",
                selector=".events",
                content=EventsContent(
                    heading="Upcoming meetups",
                    events=[
                        Event(id="spring", title="Spring meetup", date="12 March 2025",
                              availability="5 seats left", reserve_link="https://tickets.example.org/1",
                              featured=True),
                        Event(id="summer", title="Summer meetup", date="18 June 2025",
                              availability="12 seats left", reserve_link="https://tickets.example.org/2",
                              featured=False),
                        Event(id="autumn", title="Autumn meetup", date="24 September 2025",
                              availability="Fully booked", reserve_link="https://tickets.example.org/3",
                              featured=False),
                    ],
                ),
            ),
            FormSection(
                id="newsletter",
                label="Newsletter",
                selector=".newsletter",
                content=FormContent(
                    heading="Newsletter",
                    description="One email a month, no more.",
                    button_text="Subscribe",
                    privacy_note="We never share your address.",
                ),
            ),
            InfoSection(
                id="info",
                label="Practical info",
                selector=".info",
                content=InfoContent(
                    heading="Practical info",
                    info_items=[
                        InfoItem(icon="📍", label="Location", value="Main Street 1\nSpringfield"),
                        InfoItem(icon="🕐", label="Time", value="19:00 - 21:00"),
                        InfoItem(icon="💶", label="Cost", value="Free"),
                    ],
                    location_heading="How to get there",
                    map_embed_url="https://maps.example.org/embed?q=main+street",
                    directions_label="By bus:",
                    directions_text="line 5 to Central",
                ),
            ),
            FAQSection(
                id="faq",
                label="FAQ",
                selector=".faq",
                content=FAQContent(
                    heading="Questions",
                    items=[
                        FAQItem(question="Do I need to register?", answer="Yes, seats are limited."),
                        FAQItem(question="Is it free?", answer="Yes."),
                        FAQItem(question="Can I bring a friend?", answer="Of course."),
                    ],
                ),
            ),
            ContactSection(
                id="contact",
                label="Contact",
                selector=".contact",
                content=ContactContent(
                    heading="Contact",
                    description="Questions? Get in touch.",
                    email="hello@example.org",
                    buttons=[
                        Button(text="✉️ Email us", link="mailto:hello@example.org"),
                        Button(text="📞 Call us", link="tel:+3100000000"),
                    ],
                ),
            ),
            FooterSection(
                id="footer",
                label="Footer",
                selector="footer",
                content=FooterContent(text="© 2025 Community Meetups", email="hello@example.org"),
            ),
        ],
    )


@pytest.fixture
def sample_html() -> str:
    return SAMPLE_HTML


@pytest.fixture
def sample_content() -> ContentDocument:
    return make_sample_content()
