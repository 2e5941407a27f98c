"""ONIX snippets shared by the tests."""
from pathlib import Path
from typing import Optional, Sequence

from lxml import etree

from onix_catalog.document import ProductNode


def _optional(value, template: str) -> str:
    return "" if value is None else template.format(value)


def onix2_product(
    isbn: Optional[str] = "9780000000001",
    title: Optional[str] = "The Long Night",
    bisac: Optional[str] = "FIC022000",
    imprint: Optional[str] = "Night Press",
    extent_value: str = "0012345",
    extent_unit: str = "16",
    text: str = "A gripping Mystery set at sea."
) -> str:
    """A 2.1 product with a CAD price listed before the USD price."""
    return f"""
    <Product>
      <RecordReference>rec-{isbn}</RecordReference>
      <ProductIdentifier><ProductIDType>03</ProductIDType><IDValue>00000000000001</IDValue></ProductIdentifier>
      {_optional(isbn, "<ProductIdentifier><ProductIDType>15</ProductIDType><IDValue>{}</IDValue></ProductIdentifier>")}
      <Title>
        <TitleType>01</TitleType>
        {_optional(title, "<TitleText>{}</TitleText>")}
        <Subtitle>A Novel</Subtitle>
      </Title>
      <Contributor><ContributorRole>A01</ContributorRole><PersonName>Jane Doe</PersonName></Contributor>
      <Contributor><ContributorRole>E07</ContributorRole><PersonName>John Roe</PersonName></Contributor>
      <Contributor><ContributorRole>B01</ContributorRole><CorporateName>Acme Audio</CorporateName></Contributor>
      <Language><LanguageRole>01</LanguageRole><LanguageCode>eng</LanguageCode></Language>
      <Extent><ExtentType>00</ExtentType><ExtentValue>320</ExtentValue><ExtentUnit>03</ExtentUnit></Extent>
      <Extent><ExtentType>09</ExtentType><ExtentValue>{extent_value}</ExtentValue><ExtentUnit>{extent_unit}</ExtentUnit></Extent>
      {_optional(bisac, "<BASICMainSubject>{}</BASICMainSubject>")}
      <OtherText><TextTypeCode>01</TextTypeCode><Text>{text}</Text></OtherText>
      {_optional(imprint, "<Imprint><ImprintName>{}</ImprintName></Imprint>")}
      <PublicationDate>20240102</PublicationDate>
      <SupplyDetail>
        <OnSaleDate>20240109</OnSaleDate>
        <Price><PriceTypeCode>01</PriceTypeCode><PriceAmount>24.99</PriceAmount><CurrencyCode>CAD</CurrencyCode></Price>
        <Price><PriceTypeCode>01</PriceTypeCode><PriceAmount>19.99</PriceAmount><CurrencyCode>USD</CurrencyCode></Price>
      </SupplyDetail>
    </Product>
    """


def onix3_product(
    isbn: Optional[str] = "9780000000003",
    title_text: Optional[str] = None,
    title_prefix: Optional[str] = "The",
    title_without_prefix: Optional[str] = "Quiet Harbor",
    main_subject: Optional[str] = "fic022000",
    heading: Optional[str] = "detective; harbor life"
) -> str:
    """A 3.0 product with role-coded dates listed on-sale first."""
    return f"""
    <Product>
      <RecordReference>rec-{isbn}</RecordReference>
      {_optional(isbn, "<ProductIdentifier><ProductIDType>15</ProductIDType><IDValue>{}</IDValue></ProductIdentifier>")}
      <DescriptiveDetail>
        <Extent><ExtentType>09</ExtentType><ExtentValue>125.5</ExtentValue><ExtentUnit>05</ExtentUnit></Extent>
        <TitleDetail>
          <TitleType>01</TitleType>
          <TitleElement>
            <TitleElementLevel>01</TitleElementLevel>
            {_optional(title_text, "<TitleText>{}</TitleText>")}
            {_optional(title_prefix, "<TitlePrefix>{}</TitlePrefix>")}
            {_optional(title_without_prefix, "<TitleWithoutPrefix>{}</TitleWithoutPrefix>")}
            <Subtitle>Stories</Subtitle>
          </TitleElement>
        </TitleDetail>
        <Contributor><SequenceNumber>1</SequenceNumber><ContributorRole>A01</ContributorRole><PersonName>Ann Smith</PersonName></Contributor>
        <Language><LanguageRole>01</LanguageRole><LanguageCode>eng</LanguageCode></Language>
        <Subject><SubjectSchemeIdentifier>10</SubjectSchemeIdentifier><SubjectCode>FIC000000</SubjectCode></Subject>
        {_optional(main_subject, "<Subject><MainSubject/><SubjectSchemeIdentifier>10</SubjectSchemeIdentifier><SubjectCode>{}</SubjectCode></Subject>")}
        {_optional(heading, "<Subject><SubjectSchemeIdentifier>20</SubjectSchemeIdentifier><SubjectHeadingText>{}</SubjectHeadingText></Subject>")}
      </DescriptiveDetail>
      <CollateralDetail>
        <TextContent><TextType>03</TextType><Text>A Mystery on the sea.</Text></TextContent>
      </CollateralDetail>
      <PublishingDetail>
        <Imprint><ImprintName>Harbor Books</ImprintName></Imprint>
        <PublishingDate><PublishingDateRole>02</PublishingDateRole><Date>20240301</Date></PublishingDate>
        <PublishingDate><PublishingDateRole>01</PublishingDateRole><Date>20240215</Date></PublishingDate>
      </PublishingDetail>
      <ProductSupply>
        <SupplyDetail>
          <Price><PriceType>01</PriceType><PriceAmount>18.00</PriceAmount><CurrencyCode>USD</CurrencyCode></Price>
        </SupplyDetail>
      </ProductSupply>
    </Product>
    """


def onix_message(products: Sequence[str], release: Optional[str] = "2.1", namespace: Optional[str] = None) -> str:
    attributes = ""
    if namespace:
        attributes += f' xmlns="{namespace}"'
    if release is not None:
        attributes += f' release="{release}"'
    return f"<?xml version=\"1.0\" encoding=\"UTF-8\"?>\n<ONIXMessage{attributes}>\n<Header/>\n{''.join(products)}\n</ONIXMessage>\n"


def write_document(directory: Path, name: str, products: Sequence[str], **kwargs) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text(onix_message(products, **kwargs), encoding="utf-8")
    return path


def product_node(xml: str) -> ProductNode:
    return ProductNode(etree.fromstring(xml.strip()))
